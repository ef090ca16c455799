from datetime import timedelta

from resumind.db.base import iso_timestamp, utcnow
from resumind.db.models import RateLimit
from resumind.db.repositories import Repository, merge_cover_letter_patch, next_updated_at
from resumind.db.session import SessionLocal


def _letter(repo: Repository, user_id: str, letter_body, letter_header):
    return repo.create_cover_letter(
        user_id=user_id,
        template_id="modern-professional",
        job_title="Backend Engineer",
        content={**letter_body, "header": letter_header, "date": "October 19, 2026"},
    )


def test_session_tokens_resolve_until_expiry() -> None:
    with SessionLocal() as db:
        repo = Repository(db)
        user = repo.create_user(email=" Ada@Example.com ")
        token, record = repo.issue_session(user.id, ttl_min=5)

        assert user.email == "ada@example.com"
        assert record.token_hash != token
        assert repo.resolve_session(token).id == user.id
        assert repo.resolve_session("forged-token") is None

        record.expires_at = utcnow() - timedelta(seconds=1)
        db.commit()
        assert repo.resolve_session(token) is None


def test_reads_filter_by_owner(make_user, letter_body, letter_header) -> None:
    owner, _ = make_user("owner@example.com")
    other, _ = make_user("other@example.com")
    with SessionLocal() as db:
        repo = Repository(db)
        letter = _letter(repo, owner.id, letter_body, letter_header)

        assert repo.get_cover_letter(letter.id, owner.id) is not None
        assert repo.get_cover_letter(letter.id, other.id) is None
        assert repo.delete_cover_letter(letter.id, other.id) is False
        assert repo.get_cover_letter(letter.id, owner.id) is not None


def test_compare_and_set_lets_one_of_two_writers_win(auth, letter_body, letter_header) -> None:
    user, _ = auth
    with SessionLocal() as db:
        letter = _letter(Repository(db), user.id, letter_body, letter_header)

    first_db = SessionLocal()
    second_db = SessionLocal()
    try:
        first_seen = Repository(first_db).get_cover_letter(letter.id, user.id)
        second_seen = Repository(second_db).get_cover_letter(letter.id, user.id)
        assert first_seen.updated_at == second_seen.updated_at

        first = Repository(first_db).update_cover_letter_content_if_unchanged(
            letter_id=letter.id,
            user_id=user.id,
            content={**first_seen.content, "closing": "First writer."},
            expected_updated_at=first_seen.updated_at,
        )
        second = Repository(second_db).update_cover_letter_content_if_unchanged(
            letter_id=letter.id,
            user_id=user.id,
            content={**second_seen.content, "closing": "Second writer."},
            expected_updated_at=second_seen.updated_at,
        )
    finally:
        first_db.close()
        second_db.close()

    assert first is not None
    assert second is None
    with SessionLocal() as db:
        stored = Repository(db).get_cover_letter(letter.id, user.id)
        assert stored.content["closing"] == "First writer."
        assert iso_timestamp(stored.updated_at) == iso_timestamp(first)


def test_next_updated_at_is_strictly_increasing() -> None:
    future = utcnow() + timedelta(hours=1)
    assert next_updated_at(future) == future + timedelta(microseconds=1)
    past = utcnow() - timedelta(hours=1)
    assert next_updated_at(past) > past


def test_merge_patch_merges_header_one_level() -> None:
    stored = {"opening": "old", "closing": "keep", "header": {"fullName": "Ada", "email": "a@x.io"}}
    merged = merge_cover_letter_patch(stored, {"opening": "new", "header": {"email": "ada@x.io"}})

    assert merged == {
        "opening": "new",
        "closing": "keep",
        "header": {"fullName": "Ada", "email": "ada@x.io"},
    }
    assert stored["header"]["email"] == "a@x.io"


def test_wipe_removes_only_callers_data(make_user, letter_body, letter_header, feedback_payload) -> None:
    owner, _ = make_user("owner@example.com")
    other, _ = make_user("other@example.com")
    with SessionLocal() as db:
        repo = Repository(db)
        for user in (owner, other):
            repo.create_resume_analysis(
                user_id=user.id,
                job_title="Backend Engineer",
                job_description="Build services",
                resume_markdown="# Resume",
                feedback=feedback_payload,
            )
            _letter(repo, user.id, letter_body, letter_header)
            repo.create_outreach(
                user_id=user.id,
                channel="linkedin-dm",
                tone="warm",
                job_title="Backend Engineer",
                content="Hi there, quick note about the role.",
                context={"channel": "linkedin-dm", "tone": "warm"},
            )
            db.add(RateLimit(key=f"analyze:{user.id}", identity=user.id, count=1, reset_at=utcnow()))
        db.commit()

        counts = repo.wipe_user_data(owner.id)

        assert counts == {"resumes": 1, "cover_letters": 1, "outreach": 1, "rate_limits": 1}
        assert repo.list_resume_analyses(owner.id) == []
        assert repo.list_cover_letters(owner.id) == []
        assert repo.list_outreach(owner.id) == []
        assert len(repo.list_resume_analyses(other.id)) == 1
        assert len(repo.list_cover_letters(other.id)) == 1
        assert len(repo.list_outreach(other.id)) == 1
        assert db.get(RateLimit, f"analyze:{other.id}") is not None
