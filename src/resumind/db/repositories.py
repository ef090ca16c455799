from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from resumind.db.base import utcnow
from resumind.db.models import CoverLetter, Outreach, RateLimit, ResumeAnalysis, User, UserSession


def hash_text(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def next_updated_at(previous: datetime) -> datetime:
    # strictly increasing so a stale token can never match again
    return max(utcnow(), previous + timedelta(microseconds=1))


def merge_cover_letter_patch(stored: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Shallow-merge ``patch`` over ``stored``; ``header`` is merged one level deeper."""
    merged = {**stored, **patch}
    if isinstance(patch.get("header"), dict):
        merged["header"] = {**(stored.get("header") or {}), **patch["header"]}
    return merged


class Repository:
    """Every lookup of user-owned data filters on id and owner in one query."""

    def __init__(self, session: Session):
        self.session = session

    # users and sessions

    def create_user(self, email: str, name: str = "") -> User:
        user = User(email=email.strip().lower(), name=name)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_user(self, user_id: str) -> User | None:
        return self.session.get(User, user_id)

    def get_user_by_email(self, email: str) -> User | None:
        return self.session.scalar(select(User).where(User.email == email.strip().lower()))

    def issue_session(self, user_id: str, ttl_min: int) -> tuple[str, UserSession]:
        token = secrets.token_urlsafe(32)
        record = UserSession(
            user_id=user_id,
            token_hash=hash_text(token),
            expires_at=utcnow() + timedelta(minutes=ttl_min),
        )
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return token, record

    def resolve_session(self, token: str) -> User | None:
        statement = (
            select(User)
            .join(UserSession, UserSession.user_id == User.id)
            .where(UserSession.token_hash == hash_text(token), UserSession.expires_at > utcnow())
        )
        return self.session.scalar(statement)

    # resume analyses

    def create_resume_analysis(
        self,
        *,
        user_id: str,
        job_title: str,
        job_description: str,
        resume_markdown: str,
        feedback: dict[str, Any],
        company_name: str | None = None,
        preview_image: str | None = None,
        latex_content: str | None = None,
    ) -> ResumeAnalysis:
        row = ResumeAnalysis(
            user_id=user_id,
            job_title=job_title,
            job_description=job_description,
            company_name=company_name,
            resume_markdown=resume_markdown,
            feedback=feedback,
            preview_image=preview_image,
            latex_content=latex_content,
        )
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def list_resume_analyses(self, user_id: str) -> list[ResumeAnalysis]:
        statement = (
            select(ResumeAnalysis)
            .where(ResumeAnalysis.user_id == user_id)
            .order_by(ResumeAnalysis.created_at.desc())
        )
        return list(self.session.scalars(statement).all())

    def get_resume_analysis(self, resume_id: str, user_id: str) -> ResumeAnalysis | None:
        return self.session.scalar(
            select(ResumeAnalysis).where(ResumeAnalysis.id == resume_id, ResumeAnalysis.user_id == user_id)
        )

    def replace_resume_feedback(self, row: ResumeAnalysis, feedback: dict[str, Any]) -> ResumeAnalysis:
        row.feedback = feedback
        self.session.commit()
        self.session.refresh(row)
        return row

    def delete_resume_analysis(self, resume_id: str, user_id: str) -> bool:
        result = self.session.execute(
            delete(ResumeAnalysis).where(ResumeAnalysis.id == resume_id, ResumeAnalysis.user_id == user_id)
        )
        self.session.commit()
        return result.rowcount > 0

    # cover letters

    def create_cover_letter(
        self,
        *,
        user_id: str,
        template_id: str,
        job_title: str,
        content: dict[str, Any],
        company_name: str | None = None,
        job_description: str | None = None,
        resume_id: str | None = None,
    ) -> CoverLetter:
        row = CoverLetter(
            user_id=user_id,
            template_id=template_id,
            job_title=job_title,
            company_name=company_name,
            job_description=job_description,
            content=content,
            resume_id=resume_id,
        )
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def list_cover_letters(self, user_id: str) -> list[CoverLetter]:
        statement = (
            select(CoverLetter).where(CoverLetter.user_id == user_id).order_by(CoverLetter.updated_at.desc())
        )
        return list(self.session.scalars(statement).all())

    def get_cover_letter(self, letter_id: str, user_id: str) -> CoverLetter | None:
        return self.session.scalar(
            select(CoverLetter).where(CoverLetter.id == letter_id, CoverLetter.user_id == user_id)
        )

    def replace_cover_letter_content(self, row: CoverLetter, content: dict[str, Any]) -> CoverLetter:
        """Unconditional write used by regeneration; the last writer wins."""
        row.content = content
        row.updated_at = next_updated_at(row.updated_at)
        self.session.commit()
        self.session.refresh(row)
        return row

    def update_cover_letter_content_if_unchanged(
        self,
        *,
        letter_id: str,
        user_id: str,
        content: dict[str, Any],
        expected_updated_at: datetime,
    ) -> datetime | None:
        """Compare-and-set on ``updated_at``. Returns the new stamp, or None on conflict."""
        new_updated_at = next_updated_at(expected_updated_at)
        result = self.session.execute(
            update(CoverLetter)
            .where(
                CoverLetter.id == letter_id,
                CoverLetter.user_id == user_id,
                CoverLetter.updated_at == expected_updated_at,
            )
            .values(content=content, updated_at=new_updated_at)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        if result.rowcount == 0:
            return None
        return new_updated_at

    def delete_cover_letter(self, letter_id: str, user_id: str) -> bool:
        result = self.session.execute(
            delete(CoverLetter).where(CoverLetter.id == letter_id, CoverLetter.user_id == user_id)
        )
        self.session.commit()
        return result.rowcount > 0

    # outreach

    def create_outreach(
        self,
        *,
        user_id: str,
        channel: str,
        tone: str,
        job_title: str,
        content: str,
        context: dict[str, Any],
        company_name: str | None = None,
        recipient_name: str | None = None,
        subject: str | None = None,
        resume_id: str | None = None,
    ) -> Outreach:
        row = Outreach(
            user_id=user_id,
            channel=channel,
            tone=tone,
            job_title=job_title,
            company_name=company_name,
            recipient_name=recipient_name,
            subject=subject,
            content=content,
            context=context,
            resume_id=resume_id,
        )
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def list_outreach(self, user_id: str) -> list[Outreach]:
        statement = select(Outreach).where(Outreach.user_id == user_id).order_by(Outreach.created_at.desc())
        return list(self.session.scalars(statement).all())

    def get_outreach(self, outreach_id: str, user_id: str) -> Outreach | None:
        return self.session.scalar(select(Outreach).where(Outreach.id == outreach_id, Outreach.user_id == user_id))

    def update_outreach_message(self, row: Outreach, *, content: str, subject: str | None) -> Outreach:
        row.content = content
        row.subject = subject
        self.session.commit()
        self.session.refresh(row)
        return row

    def delete_outreach(self, outreach_id: str, user_id: str) -> bool:
        result = self.session.execute(
            delete(Outreach).where(Outreach.id == outreach_id, Outreach.user_id == user_id)
        )
        self.session.commit()
        return result.rowcount > 0

    # account

    def wipe_user_data(self, user_id: str) -> dict[str, int]:
        """Delete everything the user generated, all or nothing."""
        counts: dict[str, int] = {}
        try:
            for name, model, column in (
                ("resumes", ResumeAnalysis, ResumeAnalysis.user_id),
                ("cover_letters", CoverLetter, CoverLetter.user_id),
                ("outreach", Outreach, Outreach.user_id),
                ("rate_limits", RateLimit, RateLimit.identity),
            ):
                result = self.session.execute(delete(model).where(column == user_id))
                counts[name] = result.rowcount
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return counts
