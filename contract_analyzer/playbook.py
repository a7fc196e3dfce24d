"""Standard corporate playbook used when no custom rules are configured."""

from .models import PlaybookRule

DEFAULT_RULES = [
    PlaybookRule(
        name="Indemnity Cap", category="Indemnity", severity="critical",
        description="Indemnification obligations should be capped",
        condition="Indemnity cap should not exceed 2x annual fees or contract value",
    ),
    PlaybookRule(
        name="Liability Carve-outs", category="Liability", severity="critical",
        description="Limitation of liability must include standard carve-outs",
        condition="Must include carve-outs for IP infringement, confidentiality breaches, and willful misconduct",
    ),
    PlaybookRule(
        name="DPA Required for PII", category="Data Privacy", severity="critical",
        description="Data Processing Addendum required when PII is involved",
        condition="If contract involves processing personal data or PII, a DPA must be included or referenced",
    ),
    PlaybookRule(
        name="Breach Notification Timeline", category="Data Privacy", severity="warning",
        description="Data breach notification must have a reasonable timeline",
        condition="Breach notification should be required within 72 hours of discovery",
    ),
    PlaybookRule(
        name="Termination for Convenience", category="Termination", severity="warning",
        description="Must allow termination for convenience",
        condition="Must allow termination for convenience with at least 30-day prior written notice",
    ),
    PlaybookRule(
        name="Auto-Renewal Notice", category="Auto-Renewal", severity="warning",
        description="Auto-renewal must include opt-out notice period",
        condition="Auto-renewal clause must include opt-out notice period of at least 30 days before renewal date",
    ),
    PlaybookRule(
        name="IP Ownership", category="IP", severity="critical",
        description="Work product and IP ownership must vest in company",
        condition="All work product, deliverables, and IP created under the contract must vest in the company (client)",
    ),
    PlaybookRule(
        name="Non-Compete Duration", category="Non-Compete", severity="warning",
        description="Non-compete restrictions should be reasonable",
        condition="Non-compete duration should not exceed 12 months and geographic scope should be reasonable",
    ),
    PlaybookRule(
        name="SLA Uptime", category="SaaS/SLA", severity="info",
        description="SaaS agreements should include uptime commitments",
        condition="Uptime SLA of at least 99.9% with service credits for downtime",
    ),
    PlaybookRule(
        name="Cyber Insurance", category="Insurance", severity="warning",
        description="Vendor should carry adequate cyber liability insurance",
        condition="Vendor must carry at least $1M in cyber liability insurance coverage",
    ),
    PlaybookRule(
        name="Governing Law", category="Governing Law", severity="info",
        description="Governing law should be favorable jurisdiction",
        condition="Governing law should specify Delaware or California law",
    ),
    PlaybookRule(
        name="Assignment Consent", category="Assignment", severity="warning",
        description="Assignment should require prior written consent",
        condition="Neither party should be able to assign the agreement without prior written consent of the other party",
    ),
    PlaybookRule(
        name="Confidentiality Survival", category="Confidentiality", severity="warning",
        description="Confidentiality obligations should survive termination",
        condition="Confidentiality obligations must survive for at least 2 years after termination or expiration",
    ),
    PlaybookRule(
        name="Reps & Warranties", category="Representations", severity="warning",
        description="Standard representations and warranties must be present",
        condition="Contract should include standard reps & warranties: authority, compliance with laws, non-infringement",
    ),
    PlaybookRule(
        name="Force Majeure", category="Force Majeure", severity="info",
        description="Force majeure clause should be balanced",
        condition="Force majeure clause should allow either party to terminate if force majeure persists for more than 90 days",
    ),
]
