from .chain import ExtractorChain, extract_domain, is_fetchable_url

__all__ = ["ExtractorChain", "extract_domain", "is_fetchable_url"]
