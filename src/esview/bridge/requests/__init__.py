from esview.bridge.requests.bridge import HttpBridge

__all__ = ["HttpBridge"]
