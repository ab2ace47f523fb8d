from projdup.application.event.listener import subscribe_transfer_listener

__all__ = ["subscribe_transfer_listener"]
