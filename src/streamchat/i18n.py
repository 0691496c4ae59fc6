"""English and Chinese strings produced by the core."""

from __future__ import annotations

from typing import Any

from streamchat.types import Language

_STRINGS: dict[str, dict[Language, str]] = {
    "thinking": {
        Language.ENGLISH: "🤔 {name} is thinking...",
        Language.CHINESE: "🤔 {name} 正在思考中...",
    },
    "respond_in_language": {
        Language.ENGLISH: "Please respond in English only.",
        Language.CHINESE: "请使用中文回答。",
    },
    "key_missing": {
        Language.ENGLISH: (
            "⚠️ {name} API key not found. Please configure as follows:\n"
            "1. Create .env file in project root with content:\n"
            "   {env_var}=your_api_key_here\n"
            "2. Or set in system environment variables:\n"
            "   export {env_var}=your_api_key_here"
        ),
        Language.CHINESE: (
            "⚠️ 未找到 {name} API 密钥。请按以下方式配置：\n"
            "1. 在项目根目录创建 .env 文件，内容为：\n"
            "   {env_var}=your_api_key_here\n"
            "2. 或在系统环境变量中设置：\n"
            "   export {env_var}=your_api_key_here"
        ),
    },
    "key_empty": {
        Language.ENGLISH: (
            "⚠️ {name} API key is empty. Please check configuration:\n"
            "1. {env_var} in .env file must not be empty\n"
            "2. Or {env_var} in system environment variables must not be empty"
        ),
        Language.CHINESE: (
            "⚠️ {name} API 密钥为空。请检查配置：\n"
            "1. .env 文件中的 {env_var} 不能为空\n"
            "2. 或系统环境变量中的 {env_var} 不能为空"
        ),
    },
    "client_creation_failed": {
        Language.ENGLISH: "⚠️ {name} client creation failed: {detail}",
        Language.CHINESE: "⚠️ {name} 客户端创建失败: {detail}",
    },
    "request_failed": {
        Language.ENGLISH: "⚠️ {name} API call failed: could not reach the server ({detail})",
        Language.CHINESE: "⚠️ {name} API调用失败：无法连接服务器（{detail}）",
    },
    "timeout": {
        Language.ENGLISH: "⚠️ {name} did not respond within {seconds:g} seconds. Please try again.",
        Language.CHINESE: "⚠️ {name} 在 {seconds:g} 秒内没有响应，请稍后重试。",
    },
    "api_error": {
        Language.ENGLISH: "⚠️ {name} API call failed with HTTP {status}: {body}",
        Language.CHINESE: "⚠️ {name} API调用失败，HTTP {status}: {body}",
    },
    "parse_error": {
        Language.ENGLISH: "⚠️ {name} returned an unexpected response: {detail}",
        Language.CHINESE: "⚠️ {name} 返回了无法解析的响应: {detail}",
    },
    "cancelled": {
        Language.ENGLISH: "⚠️ {name} call was cancelled because the chat was closed.",
        Language.CHINESE: "⚠️ 对话已关闭，{name} 调用已取消。",
    },
    "unexpected_error": {
        Language.ENGLISH: "⚠️ {name} call failed unexpectedly. See the log for details.",
        Language.CHINESE: "⚠️ {name} 调用意外失败，详情请查看日志。",
    },
    "simulated_openai": {
        Language.ENGLISH: (
            "🤖 {name} Response (Simulated):\n\n"
            "Hello! I'm {name}, this is a simulated response.\n\n"
            'Your question: "{text}"\n\n'
            "In reality, if you configure a real API key, I can connect to the real {name} API "
            "to provide intelligent responses."
        ),
        Language.CHINESE: (
            "🤖 {name} 回复（模拟）:\n\n"
            "您好！我是{name}，这是一个模拟回复。\n\n"
            '您的问题是："{text}"\n\n'
            "实际上，如果您配置了真实的API密钥，我可以连接到真实的{name} API为您提供智能回复。"
        ),
    },
    "simulated_claude": {
        Language.ENGLISH: (
            "🤖 {name} Response (Simulated):\n\n"
            "Hello! I'm {name}, this is a simulated conversation.\n\n"
            'You said: "{text}"\n\n'
            "To get real responses, please configure the appropriate API key."
        ),
        Language.CHINESE: (
            "🤖 {name} 回复（模拟）:\n\n"
            "你好！我是{name}，这是模拟对话。\n\n"
            '你说："{text}"\n\n'
            "要获得真实回复，请配置相应的API密钥。"
        ),
    },
    "simulated_gemini": {
        Language.ENGLISH: (
            "🤖 {name} Response (Simulated):\n\n"
            "Hello! I'm Google's {name} model, currently in simulation mode.\n\n"
            "Your input: {text}\n\n"
            "For real functionality, please set up the API key."
        ),
        Language.CHINESE: (
            "🤖 {name} 回复（模拟）:\n\n"
            "您好！我是Google的{name}模型，当前为模拟模式。\n\n"
            "您输入的内容：{text}\n\n"
            "如需真实功能，请设置API密钥。"
        ),
    },
    "simulated_local": {
        Language.ENGLISH: (
            "🤖 {name} Response (Simulated):\n\n"
            "This is a simulated response from a local LLM.\n\n"
            "Your question: {text}\n\n"
            "Local models run on your device, protecting your privacy."
        ),
        Language.CHINESE: (
            "🤖 {name} 回复（模拟）:\n\n"
            "这是本地大模型的模拟回复。\n\n"
            "您的问题：{text}\n\n"
            "本地模型运行在您的设备上，保护您的隐私。"
        ),
    },
    "simulated_custom": {
        Language.ENGLISH: (
            "🤖 Custom Model『{name}』Response:\n\n"
            "This is a simulated response from a custom model.\n\n"
            "Input: {text}"
        ),
        Language.CHINESE: (
            "🤖 自定义模型『{name}』回复：\n\n"
            "这是自定义模型的模拟回复。\n\n"
            "输入内容：{text}"
        ),
    },
}


def t(key: str, language: Language = Language.ENGLISH, **values: Any) -> str:
    """Return the ``key`` string in ``language`` with ``values`` substituted."""
    variants = _STRINGS[key]
    template = variants.get(language) or variants[Language.ENGLISH]
    return template.format(**values)
