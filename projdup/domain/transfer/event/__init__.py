from projdup.domain.transfer.event.project_changed import ProjectChanged

__all__ = ["ProjectChanged"]
