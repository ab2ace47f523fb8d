from projdup.domain.transfer.util.di.provider import TransferProvider

__all__ = ["TransferProvider"]
