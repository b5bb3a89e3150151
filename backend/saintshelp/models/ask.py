"""Request/response contracts for /ask and /passages/full."""

from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from backend.saintshelp.models.passages import ClientPassage


class AskRequest(BaseModel):
    """Body for POST /ask.

    Fields default to empty so that missing values are reported by the ask
    flow as 400s rather than schema errors.
    """

    model_config = ConfigDict(populate_by_name=True)

    question: str = ""
    selected_document_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "selectedDocumentIds", "selectedBookIds", "selected_document_ids"
        ),
    )
    conversation_id: str | None = Field(
        None, validation_alias=AliasChoices("conversationId", "conversation_id")
    )


class AskResponse(BaseModel):
    """Successful /ask response (an empty passage list is a valid answer)."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: UUID = Field(..., serialization_alias="conversationId")
    conversation_title: str | None = Field(None, serialization_alias="conversationTitle")
    passages: list[ClientPassage] = Field(default_factory=list)


class FullPassageRequest(BaseModel):
    """Body for POST /passages/full."""

    model_config = ConfigDict(populate_by_name=True)

    passage_id: str = Field(
        "", validation_alias=AliasChoices("passageId", "passage_id")
    )


class FullPassageResponse(BaseModel):
    """Full text of a previously returned passage."""

    model_config = ConfigDict(populate_by_name=True)

    passage_id: UUID = Field(..., serialization_alias="passageId")
    book_id: UUID
    book_title: str
    text: str
