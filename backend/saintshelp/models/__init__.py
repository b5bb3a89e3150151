"""Models package - re-exports for convenience."""

from backend.saintshelp.models.ask import (
    AskRequest,
    AskResponse,
    FullPassageRequest,
    FullPassageResponse,
)
from backend.saintshelp.models.books import Book, BookListResponse, BookSummary, BookUploadResponse
from backend.saintshelp.models.conversations import (
    AssistantMessage,
    ConversationDetailResponse,
    ConversationHeader,
    ConversationListResponse,
    ConversationSummary,
    UserMessage,
)
from backend.saintshelp.models.passages import (
    Candidate,
    ClientPassage,
    StoredPassage,
    store_candidate,
    to_client_passage,
)

__all__ = [
    # Ask
    "AskRequest",
    "AskResponse",
    "FullPassageRequest",
    "FullPassageResponse",
    # Books
    "Book",
    "BookSummary",
    "BookListResponse",
    "BookUploadResponse",
    # Conversations
    "ConversationSummary",
    "ConversationHeader",
    "ConversationListResponse",
    "ConversationDetailResponse",
    "UserMessage",
    "AssistantMessage",
    # Passages
    "Candidate",
    "ClientPassage",
    "StoredPassage",
    "store_candidate",
    "to_client_passage",
]
