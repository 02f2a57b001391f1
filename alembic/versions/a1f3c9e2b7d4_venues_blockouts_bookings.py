"""venues, venue_blockouts and bookings

Revision ID: a1f3c9e2b7d4
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = 'a1f3c9e2b7d4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE booking_type AS ENUM ('hourly', 'daily', 'both');
        EXCEPTION WHEN duplicate_object THEN NULL;
        END $$;
    """)
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE block_type AS ENUM ('maintenance', 'personal', 'event', 'other');
        EXCEPTION WHEN duplicate_object THEN NULL;
        END $$;
    """)
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE bookingstatus AS ENUM ('pending', 'confirmed', 'cancelled', 'refunded');
        EXCEPTION WHEN duplicate_object THEN NULL;
        END $$;
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS venues (
            id                  VARCHAR(36)  PRIMARY KEY,
            venue_name          VARCHAR(255) NOT NULL,
            owner_id            VARCHAR(36),
            status              VARCHAR(30)  NOT NULL DEFAULT 'active',
            booking_type        booking_type NOT NULL DEFAULT 'hourly',
            weekly_availability JSON,
            availability        JSON,
            is_active           BOOLEAN      NOT NULL DEFAULT true,
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT now(),
            updated_at          TIMESTAMPTZ  NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_venues_owner_id ON venues (owner_id)")

    # No unique constraint on (venue_id, start_date, start_time): bulk
    # operations dedup by reading first.
    op.execute("""
        CREATE TABLE venue_blockouts (
            id           VARCHAR(36)  PRIMARY KEY,
            venue_id     VARCHAR(36)  NOT NULL REFERENCES venues(id) ON DELETE CASCADE,
            start_date   VARCHAR(10)  NOT NULL,
            end_date     VARCHAR(10)  NOT NULL,
            start_time   VARCHAR(8),
            end_time     VARCHAR(8),
            reason       VARCHAR(255) NOT NULL DEFAULT '',
            block_type   block_type   NOT NULL DEFAULT 'maintenance',
            is_recurring BOOLEAN      NOT NULL DEFAULT false,
            created_by   VARCHAR(36),
            created_at   TIMESTAMPTZ  NOT NULL DEFAULT now(),
            updated_at   TIMESTAMPTZ  NOT NULL DEFAULT now(),
            CHECK (start_date <= end_date)
        )
    """)
    op.execute("CREATE INDEX ix_venue_blockouts_venue_id    ON venue_blockouts (venue_id)")
    op.execute("CREATE INDEX ix_venue_blockouts_end_date    ON venue_blockouts (end_date)")
    op.execute("CREATE INDEX ix_venue_blockouts_venue_start ON venue_blockouts (venue_id, start_date)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS bookings (
            id          VARCHAR(36)   PRIMARY KEY,
            venue_id    VARCHAR(36)   REFERENCES venues(id) ON DELETE SET NULL,
            status      bookingstatus NOT NULL DEFAULT 'pending',
            booked_date VARCHAR(10)   NOT NULL,
            start_time  VARCHAR(8)    NOT NULL,
            end_time    VARCHAR(8)    NOT NULL,
            created_at  TIMESTAMPTZ   NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_bookings_venue_date ON bookings (venue_id, booked_date)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS venue_blockouts")
    op.execute("DROP TABLE IF EXISTS bookings")
    op.execute("DROP TABLE IF EXISTS venues")
    op.execute("DROP TYPE IF EXISTS block_type")
    op.execute("DROP TYPE IF EXISTS bookingstatus")
    op.execute("DROP TYPE IF EXISTS booking_type")
