"""Top-level exports for the yt2mp3 package."""

from .cleanup import TempFileRegistry
from .config import PipelineDefaults, load_defaults
from .controller import ConversionReport, ConversionRequest, build_orchestrator, convert_links
from .errors import (
    CleanupError,
    ConfigurationError,
    EncodeError,
    InvalidLink,
    MetadataError,
    PipelineCancelled,
    PipelineError,
    ResolveError,
    StreamNotFound,
    TransferError,
)
from .links import is_valid_link, normalize_link, validate_links, video_id
from .metadata import MetadataFetcher
from .models import (
    ItemOutcome,
    ItemState,
    MediaItem,
    PipelineResult,
    StageFailure,
    StageMessage,
    StageSuccess,
    StreamReference,
)
from .orchestrator import PipelineOrchestrator, plan_disambiguators
from .progress import ProgressEvent, RecordingSink
from .resolver import StreamResolver
from .transcoder import FFmpegEncoder, Transcoder, build_output_path, link_stem, slugify_name
from .transfer import PayloadFetcher

__all__ = [
    "PipelineDefaults",
    "load_defaults",
    "ConversionRequest",
    "ConversionReport",
    "build_orchestrator",
    "convert_links",
    "PipelineError",
    "ConfigurationError",
    "InvalidLink",
    "StreamNotFound",
    "ResolveError",
    "MetadataError",
    "TransferError",
    "EncodeError",
    "CleanupError",
    "PipelineCancelled",
    "is_valid_link",
    "normalize_link",
    "validate_links",
    "video_id",
    "StreamReference",
    "ItemState",
    "MediaItem",
    "StageSuccess",
    "StageFailure",
    "StageMessage",
    "ItemOutcome",
    "PipelineResult",
    "StreamResolver",
    "MetadataFetcher",
    "PayloadFetcher",
    "FFmpegEncoder",
    "Transcoder",
    "build_output_path",
    "link_stem",
    "slugify_name",
    "TempFileRegistry",
    "ProgressEvent",
    "RecordingSink",
    "PipelineOrchestrator",
    "plan_disambiguators",
]
