"""Volume discovery and media type classification."""
from diskpilot.discovery.classifier import VolumeClassifier
from diskpilot.discovery.media import MediaTypeProbe, TierOutcome, resolve_media_type
from diskpilot.discovery.volumes import VolumeScanner

__all__ = ['VolumeClassifier', 'MediaTypeProbe', 'TierOutcome', 'VolumeScanner', 'resolve_media_type']
