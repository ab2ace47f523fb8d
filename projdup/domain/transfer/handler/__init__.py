from projdup.domain.transfer.handler.apply_on_project_change import ApplyOnProjectChange

__all__ = ["ApplyOnProjectChange"]
