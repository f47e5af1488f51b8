"""
规则打分单测：权重累加与封顶、0.4 边界、单调性、诈骗类型优先级、严重度分档与各附加信号。
"""
import pytest

from jobshield.scams.heuristics import (
    CATEGORY_COMPANY,
    CATEGORY_INFO,
    CATEGORY_MLM,
    CATEGORY_PAYMENT,
    RULES,
    PostingView,
    Rule,
    _personal_emails,
    scam_type_for,
    score,
    severity_for,
)
from jobshield.scams.schemas import JobPosting, ScamType, Severity

BENIGN_DESCRIPTION = (
    "Acme Corp is looking for a Software Engineer to join our platform engineering group in Austin. "
    "In this role you will design, build, and maintain backend services written in Python and Go that "
    "power our logistics products. You will collaborate with product managers, designers, and other "
    "engineers to scope features, write technical design documents, and ship reliable code to production. "
    "Responsibilities include building and operating REST and gRPC APIs, improving the performance and "
    "observability of distributed systems, participating in code reviews, and sharing an on-call rotation "
    "with the rest of the team. We value clear written communication, thoughtful testing, and a pragmatic "
    "approach to tradeoffs. Qualifications: a degree in computer science or equivalent practical "
    "experience, at least three years of professional software development, strong knowledge of Python "
    "or Go, familiarity with relational databases such as PostgreSQL, and experience with containerized "
    "deployments on Kubernetes. Experience with message queues, infrastructure as code, or data pipelines "
    "is a plus. We offer a competitive salary, comprehensive health, dental, and vision insurance, a "
    "retirement plan with company match, generous parental leave, and an annual learning budget for "
    "conferences and courses. Our office is located downtown with flexible hybrid scheduling, and we "
    "support engineers who prefer to work remotely two days per week. Acme Corp is an equal opportunity "
    "employer and welcomes applicants from all backgrounds. To apply, submit your resume and a short note "
    "describing a project you are proud of through our careers page."
)

SCAM_POSTING = JobPosting(
    title="Data Entry - No Experience!",
    description=(
        "Earn $5000 per week working from home! Wire transfer fee required to start, "
        "send your social security number to hr@gmail.com"
    ),
    company="Quick Cash LLC",
)

BENIGN_POSTING = JobPosting(
    title="Software Engineer",
    description=BENIGN_DESCRIPTION,
    company="Acme Corp",
    location="Austin, TX",
)


def _posting(**overrides) -> JobPosting:
    base = dict(
        title="Support Specialist",
        description=BENIGN_DESCRIPTION,
        company="Acme Corp",
        location="Austin, TX",
    )
    base.update(overrides)
    return JobPosting(**base)


def _const_rules(*weights: float) -> list[Rule]:
    return [Rule(f"rule-{i}", w, lambda view: [""]) for i, w in enumerate(weights)]


# ──────────────────────────────────────────────
# 1. 典型场景
# ──────────────────────────────────────────────

class TestScenarios:
    def test_obvious_scam_clamps_to_one(self):
        result = score(SCAM_POSTING)
        assert result.confidence == 1.0
        assert result.is_scam is True
        assert result.severity is Severity.CRITICAL
        assert result.scam_type is ScamType.PAYMENT_SCAM
        for label in (
            "Requests upfront payment",
            "Money transfer or crypto payment",
            "Get-rich-quick language",
            "Vague job duties",
            "Requests sensitive personal information",
            "Personal email domain (hr@gmail.com)",
            "Generic company name (llc)",
        ):
            assert label in result.red_flags
        assert result.reasoning.startswith("Red flags detected: ")

    def test_benign_posting_scores_zero(self):
        result = score(BENIGN_POSTING)
        assert result.confidence == 0.0
        assert result.is_scam is False
        assert result.severity is Severity.LOW
        assert result.red_flags == []
        assert result.reasoning == "No scam indicators detected"
        assert result.scam_type is ScamType.FAKE_POSITION


# ──────────────────────────────────────────────
# 2. 权重累加、封顶与阈值
# ──────────────────────────────────────────────

class TestConfidence:
    def test_sum_of_weights(self):
        result = score(BENIGN_POSTING, rules=_const_rules(0.1, 0.2))
        assert result.confidence == pytest.approx(0.3)

    def test_clamped_at_one(self):
        result = score(BENIGN_POSTING, rules=_const_rules(0.5, 0.5, 0.5))
        assert result.confidence == 1.0

    def test_boundary_exactly_point_four_is_scam(self):
        # 0.1 + 0.1 + 0.2 的浮点和需精确等于 0.4
        result = score(BENIGN_POSTING, rules=_const_rules(0.1, 0.1, 0.2))
        assert result.confidence == 0.4
        assert result.is_scam is True
        assert result.severity is Severity.MEDIUM

    def test_just_below_threshold_is_not_scam(self):
        result = score(BENIGN_POSTING, rules=_const_rules(0.2, 0.1))
        assert result.is_scam is False

    def test_adding_a_flag_never_decreases_confidence(self):
        base = score(_posting(description=BENIGN_DESCRIPTION + " Please act now."))
        more = score(_posting(description=BENIGN_DESCRIPTION + " Please act now. Payment by wire transfer."))
        assert base.confidence == pytest.approx(0.2)
        assert more.confidence >= base.confidence
        assert more.confidence == pytest.approx(0.7)

    def test_rule_order_is_fixed(self):
        labels = [r.label for r in RULES]
        assert labels[0] == "Requests upfront payment"
        assert labels[-1] == "Unusually high hourly rate"


@pytest.mark.parametrize("confidence,expected", [
    (0.0, Severity.LOW),
    (0.39, Severity.LOW),
    (0.4, Severity.MEDIUM),
    (0.59, Severity.MEDIUM),
    (0.6, Severity.HIGH),
    (0.79, Severity.HIGH),
    (0.8, Severity.CRITICAL),
    (1.0, Severity.CRITICAL),
])
def test_severity_bands(confidence, expected):
    assert severity_for(confidence) is expected


# ──────────────────────────────────────────────
# 3. 诈骗类型优先级
# ──────────────────────────────────────────────

class TestScamType:
    @pytest.mark.parametrize("categories,expected", [
        ({CATEGORY_PAYMENT, CATEGORY_INFO, CATEGORY_MLM, CATEGORY_COMPANY}, ScamType.PAYMENT_SCAM),
        ({CATEGORY_INFO, CATEGORY_MLM}, ScamType.IDENTITY_THEFT),
        ({CATEGORY_MLM, CATEGORY_COMPANY}, ScamType.PYRAMID_SCHEME),
        ({CATEGORY_COMPANY}, ScamType.FAKE_COMPANY),
        (set(), ScamType.FAKE_POSITION),
    ])
    def test_priority(self, categories, expected):
        assert scam_type_for(frozenset(categories)) is expected

    def test_info_harvesting_posting(self):
        result = score(_posting(description=BENIGN_DESCRIPTION + " Send your bank account details with the form."))
        assert result.scam_type is ScamType.IDENTITY_THEFT

    def test_mlm_posting(self):
        result = score(_posting(description=BENIGN_DESCRIPTION + " Be your own boss and recruit others."))
        assert result.scam_type is ScamType.PYRAMID_SCHEME


# ──────────────────────────────────────────────
# 4. 附加信号
# ──────────────────────────────────────────────

class TestSignals:
    def test_generic_suffixes_stack(self):
        result = score(_posting(company="Global Solutions LLC"))
        company_flags = [f for f in result.red_flags if f.startswith("Generic company name")]
        assert len(company_flags) == 3
        assert result.confidence == pytest.approx(0.3)

    def test_personal_emails_counted_per_address(self):
        view = PostingView.of(_posting(
            contact_email="Recruiter@Gmail.com",
            description=BENIGN_DESCRIPTION + " Questions: recruiter@gmail.com or jobs@yahoo.com",
        ))
        assert _personal_emails(view) == ["recruiter@gmail.com", "jobs@yahoo.com"]

    def test_same_domain_scores_once_per_address(self):
        result = score(_posting(
            contact_email="hr@gmail.com",
            description=BENIGN_DESCRIPTION + " Backup contact: jobs@gmail.com",
        ))
        assert [f for f in result.red_flags if f.startswith("Personal email domain")] == [
            "Personal email domain (hr@gmail.com)",
            "Personal email domain (jobs@gmail.com)",
        ]
        assert result.confidence == pytest.approx(0.4)

    def test_company_email_not_flagged(self):
        result = score(_posting(contact_email="hr@acmecorp.com"))
        assert not any(f.startswith("Personal email domain") for f in result.red_flags)

    @pytest.mark.parametrize("location", [None, "", "Work from anywhere", "TBD"])
    def test_vague_location(self, location):
        result = score(_posting(location=location))
        assert "Missing or vague location" in result.red_flags

    def test_remote_is_not_vague(self):
        assert "Missing or vague location" not in score(_posting(location="Remote")).red_flags

    def test_short_description(self):
        result = score(_posting(description="Great job, apply soon."))
        assert "Very short description" in result.red_flags

    def test_high_hourly_rate_from_salary(self):
        result = score(_posting(salary="$75/hour"))
        assert "Unusually high hourly rate ($75/hour)" in result.red_flags

    def test_normal_hourly_rate(self):
        result = score(_posting(salary="$25/hour"))
        assert not any(f.startswith("Unusually high hourly rate") for f in result.red_flags)

    def test_impersonation_when_company_differs(self):
        result = score(_posting(
            company="Remote Staffing Partners",
            description=BENIGN_DESCRIPTION + " We are hiring for Amazon warehouses nationwide.",
        ))
        assert "Impersonates a major company (amazon)" in result.red_flags

    def test_no_impersonation_for_the_brand_itself(self):
        result = score(_posting(
            company="Amazon",
            description=BENIGN_DESCRIPTION + " Join us working at Amazon.",
        ))
        assert not any(f.startswith("Impersonates") for f in result.red_flags)

    def test_requirements_are_scanned(self):
        result = score(_posting(requirements=["Send $500 for training"]))
        assert "Requests upfront payment" in result.red_flags

    def test_poor_spelling_and_contact(self):
        result = score(_posting(description=BENIGN_DESCRIPTION + " You will recieve training. Message us on WhatsApp."))
        assert "Poor spelling" in result.red_flags
        assert "Unprofessional contact method" in result.red_flags
