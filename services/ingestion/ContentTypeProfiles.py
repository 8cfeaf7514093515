"""Per content-type ingestion rules: chunk sizing, defaults and required fields."""

from pydantic import BaseModel

from shared.errors import ValidationError
from shared.models.content import ContentType, VisibilityLevel

# every type needs at least this much text to be worth embedding
MIN_CONTENT_LENGTH = 50


class ContentTypeProfile(BaseModel):
    """Ingestion rules for one content type.

    required_owners lists owner fields that must all be set; any_owner_of lists
    fields of which at least one must be set.
    """

    content_type: ContentType
    min_length: int = MIN_CONTENT_LENGTH
    window_size: int = 500
    overlap: int = 50
    default_visibility: VisibilityLevel = VisibilityLevel.COACH_ONLY
    required_owners: tuple[str, ...] = ()
    any_owner_of: tuple[str, ...] = ()
    required_metadata: tuple[str, ...] = ()

    def validate_item(self, content: str, owners: dict[str, str | None], title: str | None, metadata: dict) -> None:
        """Check content length, owner fields and required metadata.

        Raises:
            ValidationError: On the first violated rule.
        """
        length = len(content.strip())
        if length < self.min_length:
            raise ValidationError(
                f"Content too short for {self.content_type.value}: {length} characters, minimum {self.min_length}."
            )
        missing = [field for field in self.required_owners if not owners.get(field)]
        if missing:
            raise ValidationError(f"{self.content_type.value} requires {', '.join(missing)}.")
        if self.any_owner_of and not any(owners.get(field) for field in self.any_owner_of):
            raise ValidationError(f"{self.content_type.value} requires one of {', '.join(self.any_owner_of)}.")
        for key in self.required_metadata:
            value = title if key == "title" else metadata.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"{self.content_type.value} requires metadata field '{key}'.")


PROFILES: dict[ContentType, ContentTypeProfile] = {
    ContentType.TRANSCRIPT: ContentTypeProfile(
        content_type=ContentType.TRANSCRIPT,
        min_length=50, window_size=500, overlap=50,
        required_owners=("owner_coach_id", "owner_client_id"),
    ),
    ContentType.ASSESSMENT: ContentTypeProfile(
        content_type=ContentType.ASSESSMENT,
        min_length=100, window_size=300, overlap=30,
        required_owners=("owner_client_id",),
        required_metadata=("assessment_type",),
    ),
    ContentType.COACH_ASSESSMENT: ContentTypeProfile(
        content_type=ContentType.COACH_ASSESSMENT,
        min_length=100, window_size=300, overlap=30,
        required_owners=("owner_coach_id",),
        required_metadata=("assessment_type",),
    ),
    ContentType.COACHING_MODEL: ContentTypeProfile(
        content_type=ContentType.COACHING_MODEL,
        min_length=200, window_size=400, overlap=50,
        default_visibility=VisibilityLevel.PRIVATE,
        any_owner_of=("owner_coach_id", "organization_id"),
        required_metadata=("model_name",),
    ),
    ContentType.COMPANY_DOC: ContentTypeProfile(
        content_type=ContentType.COMPANY_DOC,
        min_length=100, window_size=400, overlap=40,
        default_visibility=VisibilityLevel.ORG_VISIBLE,
        required_owners=("organization_id",),
        required_metadata=("doc_type",),
    ),
    ContentType.BLOG_POST: ContentTypeProfile(
        content_type=ContentType.BLOG_POST,
        min_length=200, window_size=400, overlap=50,
        required_owners=("owner_coach_id",),
        required_metadata=("title",),
    ),
    ContentType.QUESTIONNAIRE: ContentTypeProfile(
        content_type=ContentType.QUESTIONNAIRE,
        min_length=100, window_size=300, overlap=30,
        required_owners=("owner_coach_id", "owner_client_id"),
    ),
}


def parse_content_type(raw: str) -> ContentType:
    """Normalise a caller-supplied type name ("Coach-Assessment" -> coach_assessment).

    Raises:
        ValidationError: If the type is unknown.
    """
    normalised = (raw or "").strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return ContentType(normalised)
    except ValueError:
        raise ValidationError(f"Unknown content type: '{raw}'.")


def get_profile(content_type: ContentType) -> ContentTypeProfile:
    return PROFILES[content_type]
