from __future__ import annotations

from github import Github


def get_repo(repo_name: str, token: str):
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def _user_login(user) -> str | None:
    return getattr(user, "login", None) if user is not None else None


def _isoformat(value) -> str | None:
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def comment_to_raw(comment) -> dict:
    """Convert a PyGithub comment object to the REST dict shape the classifier reads."""
    return {
        "id": comment.id,
        "user": {"login": _user_login(comment.user)},
        "created_at": _isoformat(comment.created_at),
        "html_url": comment.html_url,
        "body": comment.body or "",
    }


def get_bot_comments(pr) -> list[dict]:
    """Return the PR's conversation and inline review comments, oldest first."""
    comments = [comment_to_raw(c) for c in pr.get_issue_comments()]
    comments.extend(comment_to_raw(c) for c in pr.get_review_comments())
    comments.sort(key=lambda c: c["created_at"] or "")
    return comments
