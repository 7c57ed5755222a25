"""
查询模式库

快速分类器与意图回退分类共用的静态词表和正则，进程内只加载一次，之后不再修改。
关键词均按小写文本匹配：
- 复杂关键词按子串匹配（"bestselling" 含 "best"），只有 WHOLE_WORD_KEYWORDS 中的短词按整词匹配
- 事实类词按词首匹配（"capitals" 含 "capital"，"making" 不含 "king"）
- 意图关键词按整词 / 整短语匹配
"""
from functools import lru_cache
from typing import Iterable, List, Tuple
import re


SIMPLE_QUESTION_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p) for p in (
        r"^what\s+(is|are|was|were)\s+",
        r"^who\s+(is|are|was|were)\s+",
        r"^where\s+(is|are|was|were)\s+",
        r"^when\s+(did|does|do|is|was)\s+",
        r"^which\s+",
        r"^how\s+(much|many|old|tall|wide|high|long|heavy|big|small|far)\s+",
    )
)

COMPLEX_KEYWORDS: Tuple[str, ...] = (
    # comparison
    "best", "better", "worst", "versus", "vs", "compare", "comparison",
    "difference", "similarities", "alternative", "options", "choices",
    "pros and cons", "advantages and disadvantages", "pros", "cons",
    "advantages", "disadvantages",
    # opinion
    "opinion", "think", "believe", "should", "recommend", "suggestion",
    "good", "bad", "effective", "ineffective", "arguments", "reasons",
    # research
    "based on", "according to", "research", "study", "analysis",
    "performance", "review", "evaluation", "rank", "rating", "top",
    # temporal trends
    "trend", "trends", "latest", "recent", "2024", "2025",
    # learning
    "guide", "tutorial", "learn", "understand", "explain",
)

FACTUAL_INDICATORS: Tuple[str, ...] = (
    "capital", "author", "weather", "date", "definition", "population",
    "currency", "language", "president", "prime minister", "king", "queen",
    "founder", "inventor", "creator", "developer", "company",
    "height", "weight", "size", "length", "width", "depth",
    "temperature", "speed", "distance", "area", "volume",
    "gdp", "income", "unemployment", "inflation",
    "founded", "established", "born", "died", "graduated",
    "located", "situated", "position", "coordinates", "address",
)

COMPARATIVE_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p) for p in (
        r"\bvs\b", r"\bversus\b", r"\bcompared to\b", r"\bbetter than\b",
        r"\bworse than\b", r"\bsuperior to\b", r"\binferior to\b",
    )
)

OPINION_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p) for p in (
        r"\bdo you think\b", r"\bwhat do you think\b", r"\bin your opinion\b",
        r"\bshould i\b", r"\bwould you recommend\b", r"\bwhat is your opinion\b",
    )
)

RESEARCH_PATTERNS: Tuple[re.Pattern, ...] = tuple(
    re.compile(p) for p in (
        r"\bbased on\b", r"\baccording to\b", r"\bresearch shows\b",
        r"\bstudies indicate\b", r"\banalysis of\b", r"\bevaluation of\b",
    )
)

# 顺序即平票时的优先级，factual 必须排在首位
INTENT_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("factual", ("what is", "define", "definition", "who", "when", "where",
                 "how many", "how much", "list of")),
    ("instructional", ("how to", "how do i", "step by step", "tutorial", "guide",
                       "instructions", "install", "setup")),
    ("opinion", ("best", "worst", "review", "reviews", "opinion", "recommend",
                 "should i", "do you think")),
    ("comparative", ("compare", "comparison", "difference between", "versus", "vs",
                     "alternative", "alternatives", "better than", "pros and cons")),
    ("explanatory", ("explain", "understand", "how does", "why", "what are",
                     "meaning of")),
    ("news", ("latest", "recent", "today", "news", "update", "breaking",
              "this week", "2024", "2025")),
    ("academic", ("research", "study", "studies", "paper", "analysis",
                  "methodology", "journal", "peer reviewed")),
    ("commercial", ("buy", "price", "cost", "cheap", "product", "service", "shop",
                    "discount", "deal", "purchase")),
)

STOP_WORDS = frozenset({
    "the", "is", "at", "which", "on", "a", "an", "and", "or", "but", "in", "with",
    "to", "for", "of", "that", "this", "it", "was", "are", "be", "have", "has",
    "had", "do", "does", "did", "will", "would", "could", "should", "may", "might",
    "can", "how", "what", "when", "where", "why", "who", "there", "their",
    "them", "then", "than", "so", "such", "just", "only", "very", "really", "actually",
    "about", "from", "into", "your", "you", "they", "these", "those", "some",
})

_TOKEN_STRIP = ".,!?;:\"'()[]{}<>*`"


# 作为子串会误命中大量普通词
WHOLE_WORD_KEYWORDS = frozenset({"vs"})


@lru_cache(maxsize=1024)
def _term_pattern(term: str) -> re.Pattern:
    return re.compile(r"(?<!\w)" + re.escape(term) + r"(?!\w)")


def contains_term(text: str, term: str) -> bool:
    """判断小写文本中是否包含完整词或短语"""
    return _term_pattern(term).search(text) is not None


def matches_any(text: str, patterns: Tuple[re.Pattern, ...]) -> bool:
    return any(p.search(text) for p in patterns)


def tokenize(text: str) -> List[str]:
    """按空白切分并去掉两端标点，返回小写词"""
    tokens = []
    for raw in text.lower().split():
        token = raw.strip(_TOKEN_STRIP)
        if token:
            tokens.append(token)
    return tokens


def is_stop_word(word: str) -> bool:
    return word in STOP_WORDS


@lru_cache(maxsize=1024)
def _prefix_pattern(term: str) -> re.Pattern:
    return re.compile(r"(?<!\w)" + re.escape(term))


def contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    """复杂关键词匹配：子串命中即可，WHOLE_WORD_KEYWORDS 除外"""
    for keyword in keywords:
        if keyword in WHOLE_WORD_KEYWORDS:
            if contains_term(text, keyword):
                return True
        elif keyword in text:
            return True
    return False


def contains_word_prefix(text: str, terms: Iterable[str]) -> bool:
    """事实类词匹配：词以该词开头即可，覆盖复数与屈折形式"""
    return any(_prefix_pattern(term).search(text) for term in terms)
