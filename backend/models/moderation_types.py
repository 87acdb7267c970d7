"""
Value types for report targets and appeal causes.

A report targets exactly one post or one comment, so the target is a tagged
variant rather than two nullable columns. An appeal cause is a pair of
optional references where at least one must be present.
"""

from typing import NamedTuple, Optional, Union

from models.exceptions import InvalidReportTargetException, MissingAppealCauseException
from repositories.db_models import ContentType


class PostTarget(NamedTuple):
    """Report target pointing at a post."""

    content_id: str

    @property
    def content_type(self) -> ContentType:
        return ContentType.POST

    @property
    def content_post_id(self) -> Optional[str]:
        return self.content_id

    @property
    def content_comment_id(self) -> Optional[str]:
        return None


class CommentTarget(NamedTuple):
    """Report target pointing at a comment."""

    content_id: str

    @property
    def content_type(self) -> ContentType:
        return ContentType.COMMENT

    @property
    def content_post_id(self) -> Optional[str]:
        return None

    @property
    def content_comment_id(self) -> Optional[str]:
        return self.content_id


ReportTarget = Union[PostTarget, CommentTarget]


def _clean_id(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def build_report_target(
    content_type: ContentType | str,
    content_post_id: Optional[str] = None,
    content_comment_id: Optional[str] = None,
) -> ReportTarget:
    """
    Build a report target from the flat wire representation.

    Args:
        content_type: "post" or "comment"
        content_post_id: Post identifier, required for posts
        content_comment_id: Comment identifier, required for comments

    Returns:
        PostTarget or CommentTarget

    Raises:
        InvalidReportTargetException: If the fields do not name exactly one
            target or disagree with content_type
    """
    post_id = _clean_id(content_post_id)
    comment_id = _clean_id(content_comment_id)

    if (post_id is None) == (comment_id is None):
        raise InvalidReportTargetException()

    try:
        kind = ContentType(content_type)
    except ValueError:
        raise InvalidReportTargetException(
            "content_type must be either 'post' or 'comment'"
        )

    if kind == ContentType.POST:
        if post_id is None:
            raise InvalidReportTargetException(
                "content_post_id must be specified when content_type is 'post'"
            )
        return PostTarget(post_id)

    if comment_id is None:
        raise InvalidReportTargetException(
            "content_comment_id must be specified when content_type is 'comment'"
        )
    return CommentTarget(comment_id)


class AppealCause(NamedTuple):
    """What an appeal contests: a moderation action, a report, or both."""

    moderation_action_id: Optional[str] = None
    flag_report_id: Optional[str] = None

    @classmethod
    def of(
        cls,
        moderation_action_id: Optional[str] = None,
        flag_report_id: Optional[str] = None,
    ) -> "AppealCause":
        """
        Build a validated cause.

        Raises:
            MissingAppealCauseException: If both references are empty
        """
        cause = cls(_clean_id(moderation_action_id), _clean_id(flag_report_id))
        if cause.moderation_action_id is None and cause.flag_report_id is None:
            raise MissingAppealCauseException()
        return cause
