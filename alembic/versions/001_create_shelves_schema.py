"""create shelves schema

Revision ID: 001
Revises:
Create Date: 2026-03-02

"""
from alembic import op

revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id              VARCHAR(64) PRIMARY KEY,
            display_name    VARCHAR(255) NOT NULL,
            avatar_url      TEXT,
            created_at      TIMESTAMP NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS shelves (
            id                  VARCHAR(36) PRIMARY KEY,
            user_id             VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name                VARCHAR(255) NOT NULL,
            view_count          INTEGER NOT NULL DEFAULT 0,
            likes_count         INTEGER NOT NULL DEFAULT 0,
            bookmarks_count     INTEGER NOT NULL DEFAULT 0,
            created_at          TIMESTAMP NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMP NOT NULL DEFAULT NOW(),
            CONSTRAINT check_shelves_view_count CHECK (view_count >= 0),
            CONSTRAINT check_shelves_likes_count CHECK (likes_count >= 0),
            CONSTRAINT check_shelves_bookmarks_count CHECK (bookmarks_count >= 0)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_shelves_user_id ON shelves (user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_shelves_created_at ON shelves (created_at DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_shelves_bookmarks_count ON shelves (bookmarks_count DESC)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS books (
            isbn                    VARCHAR(13) PRIMARY KEY,
            cover_url               TEXT,
            amazon_affiliate_url    TEXT,
            rakuten_affiliate_url   TEXT
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS shelf_books (
            id          VARCHAR(36) PRIMARY KEY,
            shelf_id    VARCHAR(36) NOT NULL REFERENCES shelves(id) ON DELETE CASCADE,
            isbn        VARCHAR(13) NOT NULL REFERENCES books(isbn) ON DELETE CASCADE,
            position    INTEGER NOT NULL,
            review      TEXT,
            is_spoiler  BOOLEAN NOT NULL DEFAULT FALSE,
            created_at  TIMESTAMP NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_shelf_books_shelf_isbn UNIQUE (shelf_id, isbn),
            CONSTRAINT check_shelf_books_position CHECK (position BETWEEN 1 AND 9)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_shelf_books_shelf_id ON shelf_books (shelf_id)")

    for table, target, target_table, target_column in (
        ("user_shelf_likes", "shelf_id", "shelves", "id"),
        ("user_shelf_bookmarks", "shelf_id", "shelves", "id"),
        ("user_book_bookmarks", "isbn", "books", "isbn"),
    ):
        target_type = "VARCHAR(13)" if target == "isbn" else "VARCHAR(36)"
        op.execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id          VARCHAR(36) PRIMARY KEY,
                user_id     VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                {target}    {target_type} NOT NULL REFERENCES {target_table}({target_column}) ON DELETE CASCADE,
                created_at  TIMESTAMP NOT NULL DEFAULT NOW(),
                CONSTRAINT uq_{table}_user_{'isbn' if target == 'isbn' else 'shelf'} UNIQUE (user_id, {target})
            )
        """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_book_bookmarks")
    op.execute("DROP TABLE IF EXISTS user_shelf_bookmarks")
    op.execute("DROP TABLE IF EXISTS user_shelf_likes")
    op.execute("DROP TABLE IF EXISTS shelf_books")
    op.execute("DROP TABLE IF EXISTS books")
    op.execute("DROP TABLE IF EXISTS shelves")
    op.execute("DROP TABLE IF EXISTS users")
