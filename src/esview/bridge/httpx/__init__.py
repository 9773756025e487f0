from esview.bridge.httpx.bridge import AsyncHttpBridge

__all__ = ["AsyncHttpBridge"]
