# listsearch/models.py
import json
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import MalformedPayloadError


class RankerType(str, Enum):
    QUESTION_ONLY = "QuestionOnly"
    DEFAULT = "Default"
    AUTO_SUGGEST_QUESTION = "AutoSuggestQuestion"


class ColumnInfo(BaseModel):
    """One configured answer column: key into the answer JSON + label to show."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="Name")
    display_name: str = Field(alias="DisplayName")  # may carry _xHHHH_ escapes


class KBInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    kb_id: str = Field(alias="KBId")
    kb_name: str = Field(alias="KBName")
    question_field: str = Field("", alias="QuestionField")
    answer_fields: str = Field("[]", alias="AnswerFields")  # JSON text of List[ColumnInfo]
    ranker_type: Optional[RankerType] = Field(None, alias="RankerType")
    sharepoint_url: Optional[str] = Field(None, alias="SharePointUrl")

    def parsed_answer_fields(self) -> List[ColumnInfo]:
        """Answer columns in their stored (display) order."""
        try:
            raw = json.loads(self.answer_fields or "[]")
            return [ColumnInfo.model_validate(c) for c in raw]
        except (ValueError, TypeError, ValidationError) as e:
            raise MalformedPayloadError(f"answer fields of kb {self.kb_id} are not valid: {e}") from e


class KBListItem(BaseModel):
    """Selection-list projection of KBInfo; fields not requested stay None."""
    model_config = ConfigDict(populate_by_name=True)

    kb_id: Optional[str] = Field(None, alias="KBId")
    kb_name: Optional[str] = Field(None, alias="KBName")
    question_field: Optional[str] = Field(None, alias="QuestionField")
    answer_fields: Optional[str] = Field(None, alias="AnswerFields")
    ranker_type: Optional[RankerType] = Field(None, alias="RankerType")
    sharepoint_url: Optional[str] = Field(None, alias="SharePointUrl")


class GenerateAnswerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    top: int = Field(gt=0)
    score_threshold: float = Field(0, ge=0, le=100, alias="scoreThreshold")
    ranker_type: RankerType = Field(RankerType.DEFAULT, alias="rankerType")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class QnAAnswer(BaseModel):
    answer: str = ""  # JSON-encoded object keyed by list column name
    score: float = 0.0
    questions: List[str] = Field(default_factory=list)
    id: Optional[int] = None
    source: Optional[str] = None
    metadata: List[Dict[str, Any]] = Field(default_factory=list)


class GenerateAnswerResponse(BaseModel):
    answers: List[QnAAnswer] = Field(default_factory=list)

    @classmethod
    def from_service(cls, js: Optional[Dict[str, Any]]) -> "GenerateAnswerResponse":
        js = js or {}
        return cls(answers=js.get("answers") or [])


class DeserializedAnswer(BaseModel):
    question: str  # decoded column label
    answer: str    # stringified column value


class SelectedSearchResult(BaseModel):
    kb_id: str
    question: str
    answers: List[DeserializedAnswer] = Field(default_factory=list)
    list_item_id: str = ""
    sharepoint_list_url: Optional[str] = None


class Error(BaseModel):
    code: str = ""
    message: str = ""


class ErrorResponse(BaseModel):
    error: Error = Field(default_factory=Error)


class ResultCardRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kb_id: str = Field(alias="kbId")
    answer: str  # JSON list of DeserializedAnswer, as returned by a search
    question: str = ""
    id: str = ""
    session_id: str = Field("", alias="sessionId")
