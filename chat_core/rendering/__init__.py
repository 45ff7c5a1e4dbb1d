"""助手消息的富文本渲染：Markdown、代码高亮与图表。"""
