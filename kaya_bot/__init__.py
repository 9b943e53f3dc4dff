"""KAYA-MD 机器人宿主（协议网关 -> WebSocket 客户端 + 二维码网页）

模块化结构：
- settings: 配置加载（JSON + 环境变量）
- gateway: 协议网关 WebSocket 会话
- connection: 会话生命周期 / 断线重连
- disconnect: 断线状态码与重连策略
- auth_state: 单文件凭据
- handler: 收到消息后的处理
- web / server: 二维码页面与启动
"""

__version__ = "0.1.0"
