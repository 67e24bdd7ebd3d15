"""Dictionary-based entity extractor backed by per-type term lists."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

import yaml
from loguru import logger

from src.extraction.base import (
    DEFAULT_CONTEXT_WINDOW,
    create_entity,
    extract_from_structured_data,
)
from src.extraction.models import Entity, EntityType

# Same delimiters used to split text into candidate words.
_TOKEN_PATTERN = re.compile(r"[^\s,;.:!?()\[\]{}<>/\\\"']+")

DEFAULT_TERMS: Dict[EntityType, tuple[float, tuple[str, ...]]] = {
    EntityType.ORGANIZATION: (
        0.9,
        (
            "Microsoft", "Google", "Apple", "Amazon", "Facebook", "Tesla", "IBM",
            "Intel", "Oracle", "Salesforce", "Adobe", "Netflix", "Spotify",
            "LinkedIn", "Twitter", "Uber", "Airbnb", "eBay", "PayPal", "Slack",
            "Zoom", "GitLab", "GitHub", "Atlassian", "JIRA", "Confluence", "Trello",
        ),
    ),
    EntityType.TECHNICAL_TERM: (
        0.8,
        (
            "API", "REST", "GraphQL", "SQL", "HTTP", "HTTPS", "TCP", "UDP", "IP",
            "OAuth", "JWT", "JSON", "XML", "YAML", "HTML", "CSS", "JavaScript",
            "TypeScript", "Python", "Java", "C#", "C++", "Go", "Rust", "Kotlin",
            "Swift", "Docker", "Kubernetes", "Microservice", "Serverless",
            "Machine Learning", "Artificial Intelligence", "Data Science",
            "Big Data", "Cloud Computing", "DevOps", "CI/CD", "Git", "CRUD",
            "Database", "NoSQL", "PostgreSQL", "MySQL", "MongoDB", "Redis",
        ),
    ),
    EntityType.JOB_TITLE: (
        0.8,
        (
            "CEO", "CTO", "CFO", "COO", "CIO", "CMO", "CISO",
            "Director", "Manager", "VP", "Vice President", "SVP", "EVP",
            "Software Engineer", "Data Scientist", "Product Manager",
            "Project Manager", "UX Designer", "UI Designer", "DevOps Engineer",
            "Systems Administrator", "Database Administrator", "Network Engineer",
            "Security Engineer", "QA Engineer", "Tester", "Technical Writer",
            "Scrum Master", "Agile Coach", "Tech Lead", "Team Lead",
            "Principal Engineer", "Senior Engineer", "Junior Engineer",
        ),
    ),
    EntityType.SKILL: (
        0.7,
        (
            "Programming", "Coding", "Development", "Testing", "Debugging",
            "Web Development", "Mobile Development", "Backend", "Frontend",
            "Full Stack", "Database Design", "System Architecture",
            "Cloud Architecture", "Security Analysis", "Network Administration",
            "Project Management", "Technical Writing", "Data Analysis",
            "Business Intelligence", "Machine Learning", "Natural Language Processing",
            "Computer Vision", "DevOps", "CI/CD", "Version Control", "Git",
            "Agile", "Scrum", "Kanban", "Leadership", "Team Management",
        ),
    ),
    EntityType.DATABASE_TABLE: (
        0.6,
        (
            "Users", "Customers", "Products", "Orders", "Payments",
            "Transactions", "Accounts", "Profiles", "Sessions", "Logs",
            "Configurations", "Settings", "Permissions", "Roles", "Groups",
            "Departments", "Categories", "Tags", "Comments", "Reviews",
            "Ratings", "Metrics", "Analytics", "Reports", "Audits",
            "Inventory", "Subscriptions", "Plans", "Features", "Pricing",
        ),
    ),
    EntityType.DATABASE_COLUMN: (
        0.6,
        (
            "id", "name", "email", "phone", "address", "city", "state",
            "country", "zip", "postal_code", "created_at", "updated_at",
            "deleted_at", "status", "type", "category", "description",
            "price", "cost", "quantity", "user_id", "customer_id",
            "order_id", "product_id", "payment_id", "transaction_id",
            "active", "enabled", "verified", "password", "token",
        ),
    ),
}


class DictionaryEntityExtractor:
    """Matches known terms per entity type.

    Single-token terms are looked up word by word; any term that does not form a
    single token (for example "Machine Learning" or "CI/CD") is found by scanning
    the text for its occurrences.
    """

    name = "dictionary"

    def __init__(
        self,
        terms_path: str | Path | None = None,
        *,
        case_sensitive: bool = False,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        include_defaults: bool = True,
    ) -> None:
        self.case_sensitive = case_sensitive
        self.context_window = context_window
        # type -> comparison key -> (canonical term, confidence)
        self._dictionaries: Dict[EntityType, Dict[str, tuple[str, float]]] = {}

        if include_defaults:
            for entity_type, (confidence, terms) in DEFAULT_TERMS.items():
                self.add_terms(entity_type, terms, confidence)

        if terms_path is not None:
            self._load_terms(Path(terms_path))

        logger.info(
            "Initialized DictionaryEntityExtractor with {} terms across {} entity types",
            sum(len(terms) for terms in self._dictionaries.values()),
            len(self._dictionaries),
        )

    def extract_entities(
        self, text: Optional[str], source_id: Optional[str], tenant_id: str
    ) -> List[Entity]:
        logger.debug("Extracting entities using dictionary matches (source={})", source_id)
        if not text:
            logger.warning("Empty content provided for dictionary extraction")
            return []

        tokens = [(match.group(0), match.start()) for match in _TOKEN_PATTERN.finditer(text)]
        haystack = text if self.case_sensitive else text.lower()

        entities: List[Entity] = []
        for entity_type, dictionary in self._dictionaries.items():
            for word, start in tokens:
                entry = dictionary.get(self._key(word))
                if entry is None:
                    continue
                _, confidence = entry
                entities.append(self._build(word, entity_type, source_id, tenant_id, confidence, start, text))

            for key, (term, confidence) in dictionary.items():
                if _is_single_token(term):
                    continue
                index = haystack.find(key)
                while index >= 0:
                    entities.append(
                        self._build(term, entity_type, source_id, tenant_id, confidence, index, text)
                    )
                    index = haystack.find(key, index + len(key))

        logger.info("Extracted {} entities using dictionary matches", len(entities))
        return entities

    def extract_entities_from_structured_data(
        self, data: Optional[Mapping[str, Any]], source_id: Optional[str], tenant_id: str
    ) -> List[Entity]:
        return extract_from_structured_data(
            self.extract_entities, data, source_id, tenant_id, extractor_name=self.name
        )

    def get_supported_entity_types(self) -> Set[EntityType]:
        return set(self._dictionaries)

    def add_term(self, entity_type: EntityType, term: str, confidence: float = 1.0) -> None:
        """Add (or replace) a term; confidence is clamped to [0, 1]."""
        if not term:
            raise ValueError("term must not be empty")

        clamped = max(0.0, min(1.0, confidence))
        self._dictionaries.setdefault(entity_type, {})[self._key(term)] = (term, clamped)
        logger.debug(
            "Added term '{}' for entity type {} with confidence {}",
            term,
            entity_type.value,
            clamped,
        )

    def add_terms(
        self, entity_type: EntityType, terms: Optional[Iterable[str]], confidence: float = 1.0
    ) -> None:
        """Add several terms at one confidence, skipping blank entries."""
        if terms is None:
            raise ValueError("terms must not be None")

        for term in terms:
            if term and term.strip():
                self.add_term(entity_type, term, confidence)

    def terms(self, entity_type: EntityType) -> Dict[str, float]:
        return {term: confidence for term, confidence in self._dictionaries.get(entity_type, {}).values()}

    def _key(self, text: str) -> str:
        return text if self.case_sensitive else text.lower()

    def _build(
        self,
        name: str,
        entity_type: EntityType,
        source_id: Optional[str],
        tenant_id: str,
        confidence: float,
        start: int,
        text: str,
    ) -> Entity:
        return create_entity(
            name,
            entity_type,
            source_id,
            tenant_id,
            confidence,
            start=start,
            length=len(name),
            text=text,
            window=self.context_window,
        )

    def _load_terms(self, path: Path) -> None:
        """Load extra terms from YAML.

        Expected layout::

            terms:
              Organization:
                confidence: 0.9
                values: [Acme Inc., Globex]
        """
        if not path.exists():
            logger.warning(f"Dictionary terms file not found: {path}")
            return

        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Dictionary terms file must be a mapping: {path}")

        for type_name, section in (data.get("terms") or {}).items():
            entity_type = EntityType.parse(str(type_name))
            if isinstance(section, list):
                self.add_terms(entity_type, [str(value) for value in section])
                continue
            confidence = float(section.get("confidence", 1.0))
            values = [str(value) for value in section.get("values", []) or []]
            self.add_terms(entity_type, values, confidence)

        logger.info(f"Loaded dictionary terms from {path}")


def _is_single_token(term: str) -> bool:
    return _TOKEN_PATTERN.fullmatch(term) is not None
