"""
Origin Classifier
------------------
Decides whether a discovered Candidate is a domestic (Chinese-developed)
title from its store detail payload.

No single field is trustworthy: titles get localized and publishers operate
in several regions. The classifier therefore sums weighted signals:

  Signal                                               Weight
  ---------------------------------------------------  ------
  title has CJK characters                               +15
  title has a cultural keyword                           +25
  any developer has CJK characters                       +60
  any publisher has CJK characters                       +40
  any developer is a known domestic entity               +50
  any publisher is a known domestic entity               +35
  support email is regional (.cn, qq.com, 163.com ...)   +50
  support URL is regional (.cn, weibo, bilibili)         +40
  Chinese full audio                                     +25
    ... and no English full audio                        +25
  developer is a known foreign studio                   -200
  publisher is a known foreign studio, developer has
    no regional signal, email not regional              -100

A Candidate is accepted when the total reaches ORIGIN_SCORE_THRESHOLD.
Titles on the VIP list bypass scoring with VIP_SCORE.

Scoring (`score_origin`) is a pure function of the detail payload and an
immutable HeuristicTables; `OriginClassifier.classify` adds the fetch.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

from config.settings import settings
from models.schemas import Candidate

logger = logging.getLogger(__name__)

CJK_RE = re.compile(r"[\u4e00-\u9fa5]")
CN_AUDIO_RES = (
    re.compile(r"Simplified Chinese.*?<strong>Full Audio</strong>", re.I | re.S),
    re.compile(r"简体中文.*?<strong>完全音频</strong>", re.I | re.S),
)
EN_AUDIO_RE = re.compile(r"English.*?<strong>Full Audio</strong>", re.I | re.S)


# ─── Heuristic tables ───────────────────────────────────────────────────────


KNOWN_ENTITIES = (
    "bilibili", "gamera", "lightning games", "yooreka", "thermite", "raytheon",
    "chillyroom", "coconut island", "martian", "giant", "mihoyo", "netease", "tencent",
    "game science", "playism", "indieark", "sapling", "east2west", "leiting", "youth",
    "perfect world", "wanmei", "x.d. network", "xd", "hypergryph", "manjuu", "yongshi",
    "sunborn", "papergames", "kuro", "hero entertainment", "oasis", "pixmain",
    "24 entertainment", "pathea", "recreate", "pixpil", "leenzee", "everstone", "joyone",
    "yixian", "astrolabe", "2p games", "island", "duoyi", "seasun", "kingsoft", "century",
    "snail", "loong", "zlong", "505 games", "microids", "ce-asia", "hk", "taiwan",
    "beijing", "shanghai", "shenzhen", "tanxun", "2p", "zk", "zh", "cn", "china",
    "chengdu", "hangzhou", "guangzhou",
)

CULTURAL_KEYWORDS = (
    "wuxia", "xianxia", "jianghu", "three kingdoms", "dynasty", "cultivation",
    "myth", "wukong", "wuchang", "guzheng", "taoist", "immortal", "jade",
    "shanhai", "yanyun", "sixteen tones", "swordsman", "emperor", "shaolin",
    "records of", "legend of", "sword and fairy", "gujian", "shengshi", "tianxia",
    "matchless", "kung fu", "eastern", "oriental", "loong", "dragon", "ming", "song",
    "tang", "han",
)

# Known false negatives. Where Winds Meet (燕云十六声), Shengshi Tianxia (盛世天下),
# Wuchang: Fallen Feathers (明末).
VIP_TITLES = (
    "wuchang", "fallen feathers", "where winds meet", "sixteen tones", "yanyun",
    "shengshi", "prosperity", "tianxia", "marvels",
)

FOREIGN_STUDIOS = (
    "capcom", "ubisoft", "electronic arts", "sega", "bandai namco", "square enix",
    "microsoft", "sony", "bethesda", "firaxis", "cd projekt", "rockstar", "valve",
    "paradox", "fromsoftware", "larian", "activision", "blizzard", "2k", "thq nordic",
    "focus entertainment", "nintendo", "konami", "take-two", "warner bros",
)

REGIONAL_EMAIL_SUFFIXES = (".cn",)
REGIONAL_EMAIL_MARKERS = ("qq.com", "163.com", "aliyun", "netease")
REGIONAL_URL_MARKERS = (".cn", "weibo", "bilibili")


def _lowered(words) -> Tuple[str, ...]:
    return tuple(w.lower() for w in words)


@dataclass(frozen=True)
class HeuristicTables:
    known_entities: Tuple[str, ...] = _lowered(KNOWN_ENTITIES)
    cultural_keywords: Tuple[str, ...] = _lowered(CULTURAL_KEYWORDS)
    vip_titles: Tuple[str, ...] = _lowered(VIP_TITLES)
    foreign_studios: Tuple[str, ...] = _lowered(FOREIGN_STUDIOS)
    regional_email_suffixes: Tuple[str, ...] = REGIONAL_EMAIL_SUFFIXES
    regional_email_markers: Tuple[str, ...] = REGIONAL_EMAIL_MARKERS
    regional_url_markers: Tuple[str, ...] = REGIONAL_URL_MARKERS


DEFAULT_TABLES = HeuristicTables()


# ─── Scoring ────────────────────────────────────────────────────────────────


@dataclass
class OriginScore:
    score: int
    is_vip: bool = False
    signals: Dict[str, int] = field(default_factory=dict)

    def accepted(self, threshold: int = settings.ORIGIN_SCORE_THRESHOLD) -> bool:
        return self.is_vip or self.score >= threshold


def has_cjk(text: str) -> bool:
    return bool(CJK_RE.search(text or ""))


def _contains_any(text: str, needles: Tuple[str, ...]) -> bool:
    return any(n in text for n in needles)


def is_regional_email(email: str, tables: HeuristicTables = DEFAULT_TABLES) -> bool:
    email = (email or "").lower()
    return email.endswith(tables.regional_email_suffixes) or _contains_any(
        email, tables.regional_email_markers
    )


def has_chinese_full_audio(supported_languages: str) -> bool:
    text = supported_languages or ""
    return any(r.search(text) for r in CN_AUDIO_RES) or "汉语" in text


def score_origin(details: Dict[str, Any], tables: HeuristicTables = DEFAULT_TABLES) -> OriginScore:
    """Weighted origin score for one appdetails `data` object."""
    name = details.get("name") or ""
    developers: List[str] = details.get("developers") or []
    publishers: List[str] = details.get("publishers") or []
    support = details.get("support_info") or {}
    languages = details.get("supported_languages") or ""

    lower_name = name.lower()
    lower_devs = [d.lower() for d in developers]
    lower_pubs = [p.lower() for p in publishers]

    if _contains_any(lower_name, tables.vip_titles):
        return OriginScore(score=settings.VIP_SCORE, is_vip=True, signals={"vip": settings.VIP_SCORE})

    signals: Dict[str, int] = {}

    if has_cjk(name):
        signals["title_cjk"] = 15
    if _contains_any(lower_name, tables.cultural_keywords):
        signals["title_cultural"] = 25

    dev_cjk = any(has_cjk(d) for d in developers)
    pub_cjk = any(has_cjk(p) for p in publishers)
    dev_known = any(_contains_any(d, tables.known_entities) for d in lower_devs)
    pub_known = any(_contains_any(p, tables.known_entities) for p in lower_pubs)

    if dev_cjk:
        signals["developer_cjk"] = 60
    if pub_cjk:
        signals["publisher_cjk"] = 40
    if dev_known:
        signals["developer_known"] = 50
    if pub_known:
        signals["publisher_known"] = 35

    email_regional = is_regional_email(support.get("email") or "", tables)
    support_url = (support.get("url") or "").lower()
    if email_regional:
        signals["support_email"] = 50
    if _contains_any(support_url, tables.regional_url_markers):
        signals["support_url"] = 40

    if has_chinese_full_audio(languages):
        signals["cn_audio"] = 25
        if not EN_AUDIO_RE.search(languages):
            signals["cn_audio_only"] = 25

    if any(_contains_any(d, tables.foreign_studios) for d in lower_devs):
        signals["developer_foreign"] = -200
    pub_foreign = any(_contains_any(p, tables.foreign_studios) for p in lower_pubs)
    # Foreign publishers also release domestic titles; only penalize without domestic evidence.
    if pub_foreign and not dev_cjk and not dev_known and not email_regional:
        signals["publisher_foreign"] = -100

    return OriginScore(score=sum(signals.values()), signals=signals)


# ─── Classifier ─────────────────────────────────────────────────────────────


def build_details_url(app_id: int) -> str:
    params = {"appids": app_id, "l": settings.STORE_LANGUAGE, "cc": settings.STORE_COUNTRY}
    return f"{settings.STORE_BASE_URL}/api/appdetails?{urlencode(params)}"


def extract_details(payload: Any, app_id: int) -> Optional[Dict[str, Any]]:
    """appdetails payload → the `data` object, or None if the store reports failure."""
    if not isinstance(payload, dict):
        return None
    entry = payload.get(str(app_id))
    if not isinstance(entry, dict) or not entry.get("success"):
        return None
    data = entry.get("data")
    return data if isinstance(data, dict) else None


class OriginClassifier:
    """Fetches details and scores one Candidate. Never raises."""

    def __init__(
        self,
        relay,
        tables: HeuristicTables = DEFAULT_TABLES,
        threshold: int = settings.ORIGIN_SCORE_THRESHOLD,
    ):
        self.relay = relay
        self.tables = tables
        self.threshold = threshold

    def classify(self, candidate: Candidate) -> Optional[Candidate]:
        try:
            payload = self.relay.fetch(build_details_url(candidate.app_id))
            details = extract_details(payload, candidate.app_id)
            if details is None:
                return None

            result = score_origin(details, self.tables)
            if not result.accepted(self.threshold):
                logger.debug(f"Rejected {candidate.app_id} ({result.score}): {result.signals}")
                return None

            return replace(
                candidate,
                name=details.get("name") or candidate.name,
                developers=list(details.get("developers") or []),
                publishers=list(details.get("publishers") or []),
                origin_score=result.score,
            )
        except Exception as e:
            logger.warning(f"Failed to verify details for {candidate.app_id}: {e}")
            return None
