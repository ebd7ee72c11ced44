"""Tests pour la recherche floue par nom."""

import pytest

from geocog.matcher import FuzzyNameMatcher, normalize_name
from geocog.query_config import SearchThresholds
from geocog.store import EntityStore
from geocog.types import EntityKind


class TestNormalizeName:
    """Tests pour la normalisation des noms."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Normandie", "normandie"),
            ("Île-de-France", "ile de france"),
            ("Côte-d'Or", "cote d or"),
            ("  Saint--Denis ", "saint denis"),
            ("Œuilly", "oeuilly"),
            ("L'Haÿ-les-Roses", "l hay les roses"),
        ],
    )
    def test_normalize(self, value: str, expected: str) -> None:
        assert normalize_name(value) == expected

    def test_case_and_accents_ignored(self) -> None:
        """Casse et accents ne changent pas la forme normalisée."""
        assert normalize_name("NORMANDIE") == normalize_name("normandie")
        assert normalize_name("Bréménil") == normalize_name("bremenil")


class TestScore:
    """Tests pour les paliers de score."""

    def test_exact(self, matcher: FuzzyNameMatcher) -> None:
        assert matcher.score("paris", "paris") == 1.0

    def test_prefix(self, matcher: FuzzyNameMatcher) -> None:
        assert matcher.score("pari", "parisot") == 0.9

    def test_fuzzy(self, matcher: FuzzyNameMatcher) -> None:
        """Une faute de frappe reste trouvée, sous le palier du préfixe."""
        score = matcher.score("nancyy", "nancy")

        assert score is not None
        assert score == pytest.approx(0.7273, abs=1e-4)
        assert score < matcher.thresholds.prefix_score

    def test_unrelated(self, matcher: FuzzyNameMatcher) -> None:
        assert matcher.score("toulouse", "ajaccio") is None


class TestSearch:
    """Tests pour la recherche classée."""

    def test_exact_region(self, matcher: FuzzyNameMatcher) -> None:
        results = matcher.search(EntityKind.REGION, "normandie")

        assert len(results) == 1
        assert results[0].entity.code == "28"
        assert results[0].score == 1.0

    def test_case_insensitive(self, matcher: FuzzyNameMatcher) -> None:
        """Teste que des requêtes de casse différente donnent le même résultat."""
        expected = matcher.search(EntityKind.REGION, "normandie")
        assert matcher.search(EntityKind.REGION, "NORMANDIE") == expected
        assert matcher.search(EntityKind.REGION, "Normandie") == expected

    def test_accents_ignored(self, matcher: FuzzyNameMatcher) -> None:
        results = matcher.search(EntityKind.REGION, "ile de france")
        assert results[0].entity.code == "11"
        assert results[0].score == 1.0

    def test_prefix_ties_by_code(self, matcher: FuzzyNameMatcher) -> None:
        """Les ex aequo sont départagés par code croissant."""
        results = matcher.search(EntityKind.COMMUNE, "pari")

        assert [r.entity.code for r in results[:2]] == ["75056", "81203"]
        assert results[0].score == results[1].score == 0.9

    def test_exact_before_prefix(self, matcher: FuzzyNameMatcher) -> None:
        results = matcher.search(EntityKind.COMMUNE, "paris")

        assert results[0].entity.nom == "Paris"
        assert results[0].score == 1.0
        assert results[1].entity.nom == "Parisot"
        assert results[1].score == 0.9

    def test_homonyms(self, matcher: FuzzyNameMatcher) -> None:
        results = matcher.search(EntityKind.COMMUNE, "saint denis")
        assert [r.entity.code for r in results[:2]] == ["93066", "97411"]

    def test_sorted_by_score(self, matcher: FuzzyNameMatcher) -> None:
        for text in ("saint", "bourg", "pari", "nancyy"):
            scores = [r.score for r in matcher.search(EntityKind.COMMUNE, text)]
            assert scores == sorted(scores, reverse=True)
            assert all(0 < s <= 1 for s in scores)

    def test_empty_text(self, matcher: FuzzyNameMatcher) -> None:
        assert matcher.search(EntityKind.COMMUNE, "") == []
        assert matcher.search(EntityKind.COMMUNE, " - ") == []
        assert matcher.search(EntityKind.COMMUNE, None) == []

    def test_no_match(self, matcher: FuzzyNameMatcher) -> None:
        assert matcher.search(EntityKind.REGION, "zzzzzz") == []

    def test_candidates(self, store: EntityStore, matcher: FuzzyNameMatcher) -> None:
        """Seules les positions candidates sont classées."""
        position = store.position_of(EntityKind.COMMUNE, "97411")
        assert position is not None

        results = matcher.search(EntityKind.COMMUNE, "saint denis", candidates={position})
        assert [r.entity.code for r in results] == ["97411"]

    def test_limit(self, matcher: FuzzyNameMatcher) -> None:
        assert len(matcher.search(EntityKind.COMMUNE, "pari", limit=1)) == 1


class TestThresholds:
    """Tests pour les seuils configurables."""

    def test_min_similarity(self, store: EntityStore) -> None:
        strict = FuzzyNameMatcher(store, SearchThresholds(min_similarity=0.95))
        assert strict.search(EntityKind.COMMUNE, "nancyy") == []

    def test_default_limit(self, store: EntityStore) -> None:
        limited = FuzzyNameMatcher(store, SearchThresholds(default_limit=1))
        assert len(limited.search(EntityKind.COMMUNE, "saint denis")) == 1

    def test_positions(self, store: EntityStore, matcher: FuzzyNameMatcher) -> None:
        matches = matcher.search_positions(EntityKind.REGION, "normandie")

        assert len(matches) == 1
        assert store.entity_at(EntityKind.REGION, matches[0].position).code == "28"
