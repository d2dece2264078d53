"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("settings", sa.JSON),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "vendors",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("org_id", sa.Integer, sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("attributes", sa.JSON),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_vendors_org_id", "vendors", ["org_id"])

    op.create_table(
        "policies",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("org_id", sa.Integer, sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("vendor_id", sa.Integer, sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("coverage_type", sa.String(64)),
        sa.Column("policy_number", sa.String(128)),
        sa.Column("carrier", sa.String(256)),
        sa.Column("expiration_date", sa.String(16)),
        sa.Column("limits", sa.JSON),
        sa.Column("endorsements", sa.JSON),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_policies_org_id", "policies", ["org_id"])
    op.create_index("ix_policies_vendor_id", "policies", ["vendor_id"])

    op.create_table(
        "rule_groups",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("org_id", sa.Integer, sa.ForeignKey("organizations.id"), nullable=False),
        sa.Column("label", sa.String(256), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("logic", sa.String(8), nullable=False, server_default="ALL"),
        sa.Column("scope", sa.String(16), nullable=False, server_default="anyPolicy"),
        sa.Column("weight", sa.Float, nullable=False, server_default="1"),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_rule_groups_org_id", "rule_groups", ["org_id"])

    op.create_table(
        "rules_v3",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("group_id", sa.Integer, sa.ForeignKey("rule_groups.id", ondelete="CASCADE"), nullable=False),
        sa.Column("label", sa.String(256)),
        sa.Column("field", sa.String(256), nullable=False),
        sa.Column("target", sa.String(16), nullable=False, server_default="policy"),
        sa.Column("operator", sa.String(16), nullable=False, server_default="eq"),
        sa.Column("value", sa.JSON),
        sa.Column("severity", sa.String(16), nullable=False, server_default="medium"),
        sa.Column("weight", sa.Float, nullable=False, server_default="1"),
        sa.Column("ai_hint", sa.Text),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_rules_v3_group_id", "rules_v3", ["group_id"])

    op.create_table(
        "vendor_compliance_cache",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("org_id", sa.Integer, nullable=False),
        sa.Column("vendor_id", sa.Integer, nullable=False),
        sa.Column("score", sa.Float),
        sa.Column("failing", sa.JSON),
        sa.Column("passing", sa.JSON),
        sa.Column("missing", sa.JSON),
        sa.Column("status", sa.String(16)),
        sa.Column("summary", sa.Text),
        sa.Column("last_checked_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("org_id", "vendor_id", name="uq_compliance_org_vendor"),
    )
    op.create_index("ix_vendor_compliance_cache_org_id", "vendor_compliance_cache", ["org_id"])
    op.create_index("ix_vendor_compliance_cache_vendor_id", "vendor_compliance_cache", ["vendor_id"])

    op.create_table(
        "alerts_v2",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("org_id", sa.Integer, nullable=False),
        sa.Column("vendor_id", sa.Integer, nullable=False),
        sa.Column("type", sa.String(64)),
        sa.Column("severity", sa.String(16)),
        sa.Column("category", sa.String(64)),
        sa.Column("message", sa.Text),
        sa.Column("rule_id", sa.Integer),
        sa.Column("metadata", sa.JSON),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("resolved_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_alerts_v2_org_id", "alerts_v2", ["org_id"])
    op.create_index("ix_alerts_v2_vendor_id", "alerts_v2", ["vendor_id"])
    op.create_index("ix_alerts_v2_rule_id", "alerts_v2", ["rule_id"])

    op.create_table(
        "vendor_documents",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("org_id", sa.Integer, nullable=False),
        sa.Column("vendor_id", sa.Integer, nullable=False),
        sa.Column("document_type", sa.String(64)),
        sa.Column("file_url", sa.String(1024)),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_vendor_documents_org_id", "vendor_documents", ["org_id"])
    op.create_index("ix_vendor_documents_vendor_id", "vendor_documents", ["vendor_id"])

    op.create_table(
        "policy_renewal_schedule",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("org_id", sa.Integer, nullable=False),
        sa.Column("vendor_id", sa.Integer, sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("policy_id", sa.Integer, sa.ForeignKey("policies.id"), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("last_stage", sa.Integer),
        sa.Column("next_run_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_policy_renewal_schedule_org_id", "policy_renewal_schedule", ["org_id"])

    op.create_table(
        "renewal_email_queue",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("org_id", sa.Integer, nullable=False),
        sa.Column("vendor_id", sa.Integer, nullable=False),
        sa.Column("policy_id", sa.Integer),
        sa.Column("status", sa.String(16)),
        sa.Column("meta", sa.JSON),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_renewal_email_org_vendor_created", "renewal_email_queue",
                    ["org_id", "vendor_id", "created_at"])

def downgrade():
    op.drop_index("ix_renewal_email_org_vendor_created", table_name="renewal_email_queue")
    op.drop_table("renewal_email_queue")

    op.drop_index("ix_policy_renewal_schedule_org_id", table_name="policy_renewal_schedule")
    op.drop_table("policy_renewal_schedule")

    op.drop_index("ix_vendor_documents_vendor_id", table_name="vendor_documents")
    op.drop_index("ix_vendor_documents_org_id", table_name="vendor_documents")
    op.drop_table("vendor_documents")

    op.drop_index("ix_alerts_v2_rule_id", table_name="alerts_v2")
    op.drop_index("ix_alerts_v2_vendor_id", table_name="alerts_v2")
    op.drop_index("ix_alerts_v2_org_id", table_name="alerts_v2")
    op.drop_table("alerts_v2")

    op.drop_index("ix_vendor_compliance_cache_vendor_id", table_name="vendor_compliance_cache")
    op.drop_index("ix_vendor_compliance_cache_org_id", table_name="vendor_compliance_cache")
    op.drop_table("vendor_compliance_cache")

    op.drop_index("ix_rules_v3_group_id", table_name="rules_v3")
    op.drop_table("rules_v3")

    op.drop_index("ix_rule_groups_org_id", table_name="rule_groups")
    op.drop_table("rule_groups")

    op.drop_index("ix_policies_vendor_id", table_name="policies")
    op.drop_index("ix_policies_org_id", table_name="policies")
    op.drop_table("policies")

    op.drop_index("ix_vendors_org_id", table_name="vendors")
    op.drop_table("vendors")

    op.drop_table("organizations")
