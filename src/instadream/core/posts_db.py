"""SQLite database for generated post history."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class PostStatus(str, Enum):
    """Lifecycle of a generated post, written directly by request handlers."""

    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class GeneratedPost:
    """One row of the ``generated_posts`` table."""

    id: int
    prompt: str
    caption: str | None
    image_url: str | None
    storage_key: str | None
    reference_image_url: str | None
    reference_storage_key: str | None
    model_used: str | None
    status: PostStatus
    error_message: str | None
    created_at: str
    updated_at: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


# Columns that ``update_post`` may change.
_UPDATABLE_COLUMNS = frozenset(
    {
        "prompt",
        "caption",
        "image_url",
        "storage_key",
        "reference_image_url",
        "reference_storage_key",
        "model_used",
        "status",
        "error_message",
    }
)


class PostsDB:
    """Manage the generated post history using SQLite.

    Each row records one image generation attempt: the prompt sent to the
    image model, where the result was stored, and its status.  Captions are
    attached to an existing row after the fact.
    """

    def __init__(self, db_path: Path):
        """Initialize the posts database.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_db()
        logger.info(f"Initialized posts database at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize_db(self) -> None:
        """Create database schema if it doesn't exist."""
        with closing(self._connect()) as conn, conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS generated_posts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    prompt TEXT NOT NULL,
                    caption TEXT,
                    image_url TEXT,
                    storage_key TEXT,
                    reference_image_url TEXT,
                    reference_storage_key TEXT,
                    model_used TEXT,
                    status TEXT NOT NULL DEFAULT 'pending',
                    error_message TEXT,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """)

            # History is always read newest first
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_posts_created_at
                ON generated_posts(created_at DESC)
                """)

    @staticmethod
    def _row_to_post(row: sqlite3.Row) -> GeneratedPost:
        data = dict(row)
        data["status"] = PostStatus(data["status"])
        return GeneratedPost(**data)

    def create_post(
        self,
        prompt: str,
        *,
        model_used: str | None = None,
        status: PostStatus = PostStatus.PENDING,
        reference_image_url: str | None = None,
        reference_storage_key: str | None = None,
    ) -> GeneratedPost:
        """Insert a new post row.

        Args:
            prompt: Prompt sent to the image model
            model_used: Image model path
            status: Initial status
            reference_image_url: Public URL of an uploaded reference image
            reference_storage_key: Storage key of the reference image

        Returns:
            The stored post
        """
        status = PostStatus(status)
        now = datetime.now().isoformat()
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute(
                """
                INSERT INTO generated_posts (
                    prompt, model_used, status, reference_image_url,
                    reference_storage_key, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    prompt,
                    model_used,
                    status.value,
                    reference_image_url,
                    reference_storage_key,
                    now,
                    now,
                ),
            )
            post_id = cursor.lastrowid

        logger.info(f"Created post {post_id} ({status.value})")
        post = self.get_post(post_id)
        if post is None:
            raise RuntimeError(f"Post {post_id} was not found after insert")
        return post

    def update_post(self, post_id: int, **fields) -> GeneratedPost | None:
        """Update selected columns of a post and bump ``updated_at``.

        Args:
            post_id: Post identifier
            **fields: Column values to set

        Returns:
            The updated post, or None if no post has that id

        Raises:
            ValueError: If a field is not an updatable column
        """
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")

        if "status" in fields:
            fields["status"] = PostStatus(fields["status"]).value
        fields["updated_at"] = datetime.now().isoformat()

        assignments = ", ".join(f"{column} = ?" for column in fields)
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute(
                f"UPDATE generated_posts SET {assignments} WHERE id = ?",
                (*fields.values(), post_id),
            )
            if cursor.rowcount == 0:
                logger.debug(f"Post {post_id} not found for update")
                return None

        return self.get_post(post_id)

    def get_post(self, post_id: int) -> GeneratedPost | None:
        """Fetch a single post by id."""
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT * FROM generated_posts WHERE id = ?",
                (post_id,),
            ).fetchone()
        return self._row_to_post(row) if row else None

    def list_posts(self, status: str | None = None, limit: int = 50) -> list[GeneratedPost]:
        """List posts newest first.

        Args:
            status: Only return posts with this status.  Values that are not
                a known :class:`PostStatus` are ignored.
            limit: Maximum number of posts to return

        Returns:
            List of posts ordered by creation time, newest first
        """
        valid_statuses = {s.value for s in PostStatus}
        with closing(self._connect()) as conn:
            if status in valid_statuses:
                rows = conn.execute(
                    """
                    SELECT * FROM generated_posts
                    WHERE status = ?
                    ORDER BY created_at DESC, id DESC
                    LIMIT ?
                    """,
                    (status, limit),
                ).fetchall()
            else:
                rows = conn.execute(
                    """
                    SELECT * FROM generated_posts
                    ORDER BY created_at DESC, id DESC
                    LIMIT ?
                    """,
                    (limit,),
                ).fetchall()
        return [self._row_to_post(row) for row in rows]

    def delete_post(self, post_id: int) -> bool:
        """Delete a post.

        Returns:
            True if a row was removed, False if no post has that id
        """
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute("DELETE FROM generated_posts WHERE id = ?", (post_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info(f"Deleted post {post_id}")
        return deleted
