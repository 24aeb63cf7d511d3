from .registry import MARKDOWN_MIME, ResourceRegistry, ResourceSpec

__all__ = ["MARKDOWN_MIME", "ResourceRegistry", "ResourceSpec"]
