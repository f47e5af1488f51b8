"""
职位诈骗规则打分：纯函数，无 I/O。

规则为有序的 (标签, 权重, 类别, 命中函数) 列表，对规范化（小写）后的职位文本逐条求值，
用 reduce 累加命中权重：confidence = min(Σ权重, 1.0)，confidence ≥ 0.4 判为诈骗。
个人邮箱域名、泛化公司后缀两类规则按命中次数累加。
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import reduce
from typing import Callable, NamedTuple, Optional

from jobshield.scams.schemas import HeuristicResult, JobPosting, ScamType, Severity

SCAM_THRESHOLD = 0.4
SHORT_DESCRIPTION_CHARS = 100
MAX_REASONABLE_HOURLY_RATE = 50.0

# 类别：决定 scam_type 的优先级
CATEGORY_PAYMENT = "payment"
CATEGORY_INFO = "info"
CATEGORY_MLM = "mlm"
CATEGORY_COMPANY = "company"

# 按优先级排列：payment > info > mlm > company，均未命中则 fake_position
_TYPE_PRIORITY: list[tuple[str, ScamType]] = [
    (CATEGORY_PAYMENT, ScamType.PAYMENT_SCAM),
    (CATEGORY_INFO, ScamType.IDENTITY_THEFT),
    (CATEGORY_MLM, ScamType.PYRAMID_SCHEME),
    (CATEGORY_COMPANY, ScamType.FAKE_COMPANY),
]

_SEVERITY_BANDS: list[tuple[float, Severity]] = [
    (0.8, Severity.CRITICAL),
    (0.6, Severity.HIGH),
    (0.4, Severity.MEDIUM),
]

UPFRONT_PAYMENT = re.compile(
    r"\b(?:registration|training|starter|application|processing|onboarding|equipment)\s+(?:fee|kit|cost)s?\b"
    r"|\bfees?\s+(?:is\s+|are\s+)?required\b"
    r"|\bpay\s+(?:a|an|the|us|for)\b.{0,30}\b(?:fee|training|materials|kit|equipment)\b"
    r"|\bsend\s+(?:us\s+)?\$\s?\d"
    r"|\bupfront\s+(?:payment|fee|cost)\b"
)
MONEY_TRANSFER = re.compile(
    r"\bwire\s+(?:transfer|money|funds)\b|\bwestern\s+union\b|\bmoneygram\b|\bmoney\s+orders?\b"
    r"|\bbitcoin\b|\bcrypto(?:currency)?\b|\bgift\s+cards?\b|\bcashier'?s?\s+checks?\b"
    r"|\bdeposit\s+(?:the\s+|a\s+)?check\b|\bzelle\b|\bcash\s?app\b"
)
UNREALISTIC_PAY = re.compile(
    r"\bunlimited\s+(?:income|earnings?|pay)\b|\bearn\s+up\s+to\s+\$"
    r"|\$\s?\d[\d,]{3,}\s*(?:/|per|a|an|every)\s*(?:day|daily)\b"
    r"|\b(?:six|6)[- ]figure\s+income\b|\bhigh\s+pay\s+for\s+(?:little|easy|simple)\b"
)
GET_RICH_QUICK = re.compile(
    r"\bget\s+rich\b|\bmake\s+money\s+fast\b"
    r"|\b(?:earn|make)\s+\$\s?\d[\d,]*(?:\.\d+)?k?\s*(?:/|per|a|an|every)\s*(?:week|weekly|day|daily)\b"
    r"|\bguaranteed\s+(?:income|earnings|pay|money)\b|\bfinancial\s+freedom\b|\bpassive\s+income\b"
    r"|\bquick\s+(?:cash|money)\b|\beasy\s+money\b"
)
VAGUE_TASKS = re.compile(
    r"\bdata\s+entry\b|\bsimple\s+tasks?\b|\beasy\s+(?:work|job|tasks?)\b|\bno\s+experience\b"
    r"|\bpackage\s+(?:reshipping|forwarding|processing)\b|\breshipping\b|\benvelope\s+stuffing\b"
)
UNREALISTIC_REQUIREMENTS = re.compile(
    r"\bno\s+(?:interview|resume|cv|skills?|qualifications?)\s+(?:needed|required|necessary)\b"
    r"|\bno\s+experience\s+(?:needed|required|necessary)\b"
    r"|\banyone\s+can\s+(?:do|apply)\b|\bonly\s+requirement\b|\bmust\s+be\s+18\b"
)
SENSITIVE_INFO = re.compile(
    r"\bsocial\s+security\b|\bssn\b|\bbank\s+(?:account|details|login|information)\b|\brouting\s+number\b"
    r"|\bcredit\s+card\s+(?:number|details|information)\b|\bpassport\s+(?:number|copy|scan)\b"
    r"|\bdriver'?s?\s+licen[cs]e\s+(?:number|copy|scan)\b|\bdate\s+of\s+birth\b|\bmother'?s\s+maiden\s+name\b"
)
UNPROFESSIONAL_CONTACT = re.compile(
    r"\bwhats\s?app\b|\btelegram\b|\bsignal\s+app\b|\bgoogle\s+hangouts?\b|\bkik\b"
    r"|\btext\s+(?:me|us)\s+(?:at|on)\b|\bdm\s+(?:me|us)\b|\bskype\s+interview\b"
)
MAJOR_BRANDS = ("amazon", "google", "microsoft", "apple", "facebook", "meta", "netflix", "walmart", "paypal", "fedex")
IMPERSONATION = re.compile(
    r"\b(?:hiring|recruiting|working|work|positions?|jobs?|partner(?:ed|ing)?|contract(?:ed|ors?)?)\s+"
    r"(?:for|with|at)\s+(" + "|".join(MAJOR_BRANDS) + r")\b"
    r"|\bon\s+behalf\s+of\s+(" + "|".join(MAJOR_BRANDS) + r")\b"
)
MLM = re.compile(
    r"\bmulti[- ]?level\s+marketing\b|\bmlm\b|\bnetwork\s+marketing\b|\bpyramid\b|\bdownline\b"
    r"|\brecruit\s+(?:others|friends|family|your\s+friends)\b|\bbuild\s+your\s+(?:own\s+)?team\b"
    r"|\bbe\s+your\s+own\s+boss\b|\bunlimited\s+referrals?\b"
)
URGENCY = re.compile(
    r"\burgent(?:ly)?\b|\bact\s+(?:now|fast|quickly)\b|\bimmediately\b"
    r"|\blimited\s+(?:time|spots|positions|openings)\b|\bonly\s+\d+\s+(?:spots|positions|openings)\s+left\b"
    r"|\bdon'?t\s+miss\s+(?:out|this)\b|\basap\b|\bstart\s+today\b"
)
MISSPELLINGS = re.compile(
    r"\b(?:recieve|oppurtunity|oportunity|bussiness|buisness|garanteed|guarenteed|gauranteed"
    r"|immediatly|experiance|sallary|salery|paymnet|benifits|earnigs|untill|responsibilty)\b"
)

PERSONAL_EMAIL_DOMAINS = frozenset({
    "gmail.com", "yahoo.com", "hotmail.com", "outlook.com", "aol.com", "icloud.com", "mail.com",
    "protonmail.com", "proton.me", "ymail.com", "live.com", "gmx.com", "yandex.com",
})
EMAIL = re.compile(r"[\w.+-]+@([\w-]+(?:\.[\w-]+)+)")

GENERIC_COMPANY_SUFFIX = re.compile(
    r"\b(llc|ltd|solutions|services|enterprises?|global|international|group|holdings"
    r"|ventures|opportunities|consulting|staffing|associates)\b"
)
VAGUE_LOCATIONS = frozenset({
    "anywhere", "work from anywhere", "various", "multiple locations", "tbd", "n/a", "na",
    "online", "home", "worldwide", "unknown", "-",
})
HOURLY_RATE = re.compile(r"\$\s?(\d[\d,]*(?:\.\d+)?)\s*(?:/|per|an|a)\s*(?:hour|hr)\b")


@dataclass(frozen=True)
class PostingView:
    """规范化后的职位视图：text 为小写的 标题 + 描述 + 任职要求。"""
    text: str
    company: str
    location: str
    description: str
    salary: str
    emails: tuple[str, ...]

    @classmethod
    def of(cls, posting: JobPosting) -> "PostingView":
        body = " ".join([posting.title or "", posting.description or "", *posting.requirements])
        text = body.lower()
        emails = [m.group(0).lower() for m in EMAIL.finditer(text)]
        if posting.contact_email:
            emails.insert(0, posting.contact_email.strip().lower())
        return cls(
            text=text,
            company=(posting.company or "").strip().lower(),
            location=(posting.location or "").strip().lower(),
            description=(posting.description or "").strip(),
            salary=(posting.salary or "").lower(),
            emails=tuple(dict.fromkeys(emails)),
        )


# 命中函数：返回命中明细列表；普通规则命中为 [""]，按次累加的规则每个元素为一次命中
Matcher = Callable[[PostingView], list[str]]


@dataclass(frozen=True)
class Rule:
    label: str
    weight: float
    matcher: Matcher
    category: Optional[str] = None


def _phrases(pattern: re.Pattern[str]) -> Matcher:
    return lambda view: [""] if pattern.search(view.text) else []


def _impersonation(view: PostingView) -> list[str]:
    for m in IMPERSONATION.finditer(view.text):
        brand = m.group(1) or m.group(2)
        if brand not in view.company:
            return [brand]
    return []


def _personal_emails(view: PostingView) -> list[str]:
    return [e for e in view.emails if e.rsplit("@", 1)[-1] in PERSONAL_EMAIL_DOMAINS]


def _generic_suffixes(view: PostingView) -> list[str]:
    return list(dict.fromkeys(GENERIC_COMPANY_SUFFIX.findall(view.company)))


def _vague_location(view: PostingView) -> list[str]:
    if not view.location or view.location in VAGUE_LOCATIONS or "anywhere" in view.location:
        return [""]
    return []


def _short_description(view: PostingView) -> list[str]:
    return [""] if len(view.description) < SHORT_DESCRIPTION_CHARS else []


def _high_hourly_rate(view: PostingView) -> list[str]:
    for m in HOURLY_RATE.finditer(f"{view.salary} {view.text}"):
        rate = float(m.group(1).replace(",", ""))
        if rate > MAX_REASONABLE_HOURLY_RATE:
            return [f"${rate:g}/hour"]
    return []


RULES: list[Rule] = [
    Rule("Requests upfront payment", 0.4, _phrases(UPFRONT_PAYMENT), CATEGORY_PAYMENT),
    Rule("Money transfer or crypto payment", 0.5, _phrases(MONEY_TRANSFER), CATEGORY_PAYMENT),
    Rule("Unrealistic pay promises", 0.3, _phrases(UNREALISTIC_PAY)),
    Rule("Get-rich-quick language", 0.4, _phrases(GET_RICH_QUICK)),
    Rule("Vague job duties", 0.2, _phrases(VAGUE_TASKS)),
    Rule("Unrealistic requirements", 0.3, _phrases(UNREALISTIC_REQUIREMENTS)),
    Rule("Requests sensitive personal information", 0.4, _phrases(SENSITIVE_INFO), CATEGORY_INFO),
    Rule("Unprofessional contact method", 0.3, _phrases(UNPROFESSIONAL_CONTACT)),
    Rule("Impersonates a major company", 0.4, _impersonation),
    Rule("MLM or pyramid scheme language", 0.4, _phrases(MLM), CATEGORY_MLM),
    Rule("Urgency pressure", 0.2, _phrases(URGENCY)),
    Rule("Poor spelling", 0.2, _phrases(MISSPELLINGS)),
    Rule("Personal email domain", 0.2, _personal_emails),
    Rule("Generic company name", 0.1, _generic_suffixes, CATEGORY_COMPANY),
    Rule("Missing or vague location", 0.1, _vague_location),
    Rule("Very short description", 0.2, _short_description),
    Rule("Unusually high hourly rate", 0.2, _high_hourly_rate),
]


class _Tally(NamedTuple):
    total: float = 0.0
    flags: tuple[str, ...] = ()
    categories: frozenset[str] = frozenset()


def _fold(view: PostingView, acc: _Tally, rule: Rule) -> _Tally:
    hits = rule.matcher(view)
    if not hits:
        return acc
    flags = tuple(f"{rule.label} ({h})" if h else rule.label for h in hits)
    categories = acc.categories | {rule.category} if rule.category else acc.categories
    return _Tally(acc.total + rule.weight * len(hits), acc.flags + flags, categories)


def severity_for(confidence: float) -> Severity:
    for floor, severity in _SEVERITY_BANDS:
        if confidence >= floor:
            return severity
    return Severity.LOW


def scam_type_for(categories: frozenset[str]) -> ScamType:
    for category, scam_type in _TYPE_PRIORITY:
        if category in categories:
            return scam_type
    return ScamType.FAKE_POSITION


def score(posting: JobPosting, rules: list[Rule] | None = None) -> HeuristicResult:
    """
    对单条职位做规则打分。
    浮点和先四舍五入到 4 位再封顶，保证 0.4 / 0.6 / 0.8 / 0.95 等阈值比较精确。
    """
    view = PostingView.of(posting)
    tally = reduce(lambda acc, rule: _fold(view, acc, rule), rules if rules is not None else RULES, _Tally())
    confidence = min(round(tally.total, 4), 1.0)
    if tally.flags:
        reasoning = "Red flags detected: " + "; ".join(tally.flags)
    else:
        reasoning = "No scam indicators detected"
    return HeuristicResult(
        is_scam=confidence >= SCAM_THRESHOLD,
        confidence=confidence,
        scam_type=scam_type_for(tally.categories),
        severity=severity_for(confidence),
        reasoning=reasoning,
        red_flags=list(tally.flags),
    )
