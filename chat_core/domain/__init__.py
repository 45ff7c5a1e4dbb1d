"""领域层模型与协议。

包含：
- models: ChatMessage / RelayRequest 以及图表渲染结果模型。
- conversation: 会话内追加式的消息列表 ConversationState。
- exceptions: 业务异常类型定义。
"""
