"""billing core tables: firms, catalogue, parties, documents, banking, payments, sync outbox

Revision ID: 0001_billing_core
Revises:
Create Date: 2026-10-19T09:12:40.118204Z
"""
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_billing_core"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    # Schema comes straight from the mapped models; env.py has imported them.
    from app.db.base import Base
    bind = op.get_bind()
    Base.metadata.create_all(bind=bind)

def downgrade():
    from app.db.base import Base
    bind = op.get_bind()
    Base.metadata.drop_all(bind=bind)
