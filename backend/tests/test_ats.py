"""Tests for ATS keyword scoring."""

from cvbuilder.cv.ats import analyze_cv, apply_report, cv_text, extract_keywords
from cvbuilder.cv.models import CV


def _cv(**fields) -> CV:
    return CV(title="Test", personal_info={}, **fields)


class TestExtractKeywords:
    def test_drops_stopwords_and_duplicates(self):
        keywords = [k.keyword for k in extract_keywords("We are looking for Python and python and AWS")]
        assert keywords == ["python", "aws"]

    def test_marks_important_keywords(self):
        by_name = {k.keyword: k.important for k in extract_keywords("Python plumbing")}
        assert by_name == {"python": True, "plumbing": False}

    def test_multi_word_phrases(self):
        keywords = [k.keyword for k in extract_keywords("Experience with machine learning and Docker")]
        assert "machine learning" in keywords
        assert "machine" not in keywords
        assert "learning" not in keywords
        assert "docker" in keywords

    def test_keeps_symbols_in_tech_names(self):
        keywords = [k.keyword for k in extract_keywords("C++, C# and Node.js.")]
        assert keywords == ["c++", "c#", "node.js"]

    def test_empty_description(self):
        assert extract_keywords("") == []


class TestCvText:
    def test_collects_searchable_fields(self):
        cv = _cv(
            summary="Summary text",
            work_experience=[{"position": "Engineer", "description": "Built APIs", "achievements": ["Shipped"]}],
            education=[{"degree": "BSc", "field": "Physics"}],
            skills=[{"name": "Kubernetes"}],
            projects=[{"description": "Side project", "technologies": ["Rust"]}],
            certifications=[{"name": "CKA"}],
        )
        text = cv_text(cv)
        for word in ("summary text", "engineer", "built apis", "shipped", "bsc", "physics",
                     "kubernetes", "side project", "rust", "cka"):
            assert word in text

    def test_empty_cv(self):
        assert cv_text(_cv()) == ""


class TestAnalyzeCV:
    def test_partial_match(self):
        cv = _cv(skills=[{"name": "Python"}, {"name": "AWS"}])
        report = analyze_cv(cv, "Python AWS Docker")

        assert report.ats_score == 67
        assert report.matching_keywords == ["python", "aws"]
        assert report.missing_keywords == ["docker"]
        assert report.suggestions[0] == "Add these missing keywords to your CV: docker"

    def test_full_match(self):
        cv = _cv(summary="Python developer", skills=[{"name": "Docker"}])
        report = analyze_cv(cv, "python docker")
        assert report.ats_score == 100
        assert report.missing_keywords == []

    def test_no_keywords_scores_zero(self):
        report = analyze_cv(_cv(skills=[{"name": "Python"}]), "the and of")
        assert report.ats_score == 0
        assert report.matching_keywords == []

    def test_counts_occurrences(self):
        cv = _cv(summary="python python", skills=[{"name": "Python"}])
        report = analyze_cv(cv, "python")
        assert report.keyword_matches == [{"keyword": "python", "count": 3, "important": True}]

    def test_short_summary_suggestion(self):
        report = analyze_cv(_cv(summary="Too short"), "python")
        assert any("summary is too short" in s for s in report.suggestions)

    def test_missing_work_experience_suggestion(self):
        report = analyze_cv(_cv(), "python")
        assert "Add work experience to improve your CV." in report.suggestions

    def test_missing_achievements_suggestion(self):
        cv = _cv(work_experience=[{"position": "Dev", "achievements": []}])
        report = analyze_cv(cv, "python")
        assert "Add achievements to your work experience to showcase results and impact." in report.suggestions

    def test_response_shape(self):
        body = analyze_cv(_cv(skills=[{"name": "Python"}]), "Python").to_response()
        assert set(body) == {"atsScore", "matchingKeywords", "missingKeywords", "suggestions"}


class TestApplyReport:
    def test_stores_score_and_targets(self):
        cv = _cv(skills=[{"name": "Python"}])
        report = analyze_cv(cv, "Python Docker")
        apply_report(cv, report, "Backend Engineer", "Acme")

        assert cv.cv_metadata["atsScore"] == 50
        assert cv.cv_metadata["keywordMatches"] == [{"keyword": "python", "count": 1, "important": True}]
        assert cv.cv_metadata["targetJobTitle"] == "Backend Engineer"
        assert cv.cv_metadata["targetCompany"] == "Acme"
        assert cv.cv_metadata["lastOptimized"]

    def test_keeps_previous_targets_when_not_given(self):
        cv = _cv(cv_metadata={"targetJobTitle": "Old title"})
        apply_report(cv, analyze_cv(cv, "python"))
        assert cv.cv_metadata["targetJobTitle"] == "Old title"
