from __future__ import annotations

"""Error kinds surfaced by the knowledge base. Each carries a message that is
safe to show to an end user in place of a stack trace."""


class KnowledgeBaseError(Exception):
    """Base class for all pipeline failures."""

    kind = "error"
    user_message = "Something went wrong while processing this video."

    def __init__(self, detail: str = None, user_message: str = None):
        if user_message:
            self.user_message = user_message
        super().__init__(detail or self.user_message)


class InvalidUrl(KnowledgeBaseError, ValueError):
    kind = "invalid_url"
    user_message = "That doesn't look like a valid YouTube URL."


class NoTranscriptAvailable(KnowledgeBaseError):
    kind = "no_transcript"
    user_message = (
        "No transcript is available for this video. "
        "Try a video with captions enabled."
    )


class VideoPrivateOrUnavailable(KnowledgeBaseError):
    kind = "video_unavailable"
    user_message = "This video is private or unavailable. Please use a public video."


class VideoAgeRestricted(KnowledgeBaseError):
    kind = "age_restricted"
    user_message = "This video is age-restricted and cannot be processed."


class TranscriptFetchFailed(KnowledgeBaseError):
    kind = "transcript_fetch_failed"
    user_message = "Failed to fetch the video transcript. Please try again later."


class EmbeddingFailed(KnowledgeBaseError):
    kind = "embedding_failed"
    user_message = "Failed to index the transcript. Please try again later."


class NoRelevantContent(KnowledgeBaseError):
    """Not a failure: the analysis has nothing to rank against."""

    kind = "no_relevant_content"
    user_message = (
        "I couldn't find relevant information in the video transcript to answer "
        "your question. Please try rephrasing or ask about a different topic "
        "from the video."
    )


class UpstreamTimeout(KnowledgeBaseError):
    kind = "timeout"
    user_message = "An external service took too long to respond. Please try again."


class UpstreamServiceError(KnowledgeBaseError):
    kind = "upstream_error"
    user_message = "An external service failed. Please try again later."


class AnalysisNotFound(KnowledgeBaseError, LookupError):
    kind = "not_found"
    user_message = "That video analysis does not exist."
