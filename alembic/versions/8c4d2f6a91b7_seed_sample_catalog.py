"""seed sample catalog

Revision ID: 8c4d2f6a91b7
Revises: 3b1e9c2d7a40
Create Date: 2026-10-17 00:05:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op
from lms.repos.course_repo import sample_catalog

# revision identifiers, used by Alembic.
revision: str = "8c4d2f6a91b7"
down_revision: str | Sequence[str] | None = "3b1e9c2d7a40"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

courses = sa.table(
    "courses",
    sa.column("id", sa.Integer),
    sa.column("title", sa.String),
    sa.column("description", sa.Text),
    sa.column("instructor", sa.String),
    sa.column("duration", sa.String),
    sa.column("thumbnail", sa.Text),
    sa.column("total_modules", sa.Integer),
)

course_modules = sa.table(
    "course_modules",
    sa.column("course_id", sa.Integer),
    sa.column("module_number", sa.Integer),
    sa.column("title", sa.String),
    sa.column("description", sa.Text),
    sa.column("duration", sa.String),
    sa.column("media_reference", sa.Text),
    sa.column("resources", postgresql.JSONB),
)


def upgrade() -> None:
    catalog = sample_catalog()
    op.bulk_insert(
        courses,
        [
            {
                "id": c.course_id,
                "title": c.title,
                "description": c.description,
                "instructor": c.instructor,
                "duration": c.duration,
                "thumbnail": c.thumbnail,
                "total_modules": c.total_module_count,
            }
            for c in catalog
        ],
    )
    op.bulk_insert(
        course_modules,
        [
            {
                "course_id": c.course_id,
                "module_number": m.module_number,
                "title": m.title,
                "description": m.description,
                "duration": m.duration,
                "media_reference": m.media_reference,
                "resources": [
                    {"title": r.title, "type": r.type, "url": r.url}
                    for r in m.resources
                ],
            }
            for c in catalog
            for m in c.modules
        ],
    )
    # Explicit ids were inserted; move the serial past them.
    op.execute(
        "SELECT setval(pg_get_serial_sequence('courses', 'id'), "
        "(SELECT MAX(id) FROM courses))"
    )


def downgrade() -> None:
    ids = [c.course_id for c in sample_catalog()]
    op.execute(course_modules.delete().where(course_modules.c.course_id.in_(ids)))
    op.execute(courses.delete().where(courses.c.id.in_(ids)))
