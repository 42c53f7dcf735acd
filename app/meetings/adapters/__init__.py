from meetings.adapters.zego import ZegoAdapter

__all__ = ["ZegoAdapter"]
