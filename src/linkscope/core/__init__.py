"""Core domain package for linkscope.

Core contains link extraction, content classification, title extraction,
reply formatting and orchestration without any Telegram, HTTP client or
storage-specific code, keeping the resolution pipeline portable.
"""
