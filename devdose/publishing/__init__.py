from devdose.publishing.service import PublishingService, to_post_row

__all__ = ["PublishingService", "to_post_row"]
