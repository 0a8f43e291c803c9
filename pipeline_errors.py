"""
Exceptions raised by the template generation pipeline.

Every stage of a single template's pipeline raises one of these. The
orchestrator turns them into failed GenerationResult records so that one bad
template never aborts a batch.
"""

from typing import Optional


class TemplatePipelineError(Exception):
    """Base class for template pipeline errors"""
    retryable = False


class InvalidArgument(TemplatePipelineError, ValueError):
    """Bad enum value or empty required field - a caller bug, never retried"""
    pass


class GenerationFailed(TemplatePipelineError):
    """The image synthesis service returned no usable image"""
    retryable = True


class DownloadFailed(TemplatePipelineError):
    """Fetching a synthesized image did not succeed"""
    retryable = True

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UploadFailed(TemplatePipelineError):
    """Writing an object to storage failed"""
    retryable = True

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class MalformedInput(TemplatePipelineError, ValueError):
    """Text overlay requested without a title"""
    pass
