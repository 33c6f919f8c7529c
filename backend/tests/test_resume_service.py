"""Tests for folding AI enhancement back into a submitted resume"""
from unittest.mock import patch

from backend.app.schemas.resume import ResumeData
from backend.app.services.resume_service import apply_enhancement, merge_enhanced_experience

ACME = {"role": "Engineer", "company": "Acme", "duration": "2020-2022", "location": "Remote", "points": ["a", "b"]}
INITECH = {"role": "Intern", "company": "Initech", "duration": "2019", "location": "", "points": ["c"]}


def test_bullets_fold_into_single_entry():
    assert merge_enhanced_experience([ACME], ["Led X", "Shipped Y", "Hired Z"]) == [
        {**ACME, "points": ["Led X", "Shipped Y", "Hired Z"]}
    ]


def test_bullets_spread_over_existing_point_slots():
    merged = merge_enhanced_experience([ACME, INITECH], ["A1", "B1", "C1"])
    assert merged == [{**ACME, "points": ["A1", "B1"]}, {**INITECH, "points": ["C1"]}]


def test_bullets_that_do_not_line_up_keep_original():
    assert merge_enhanced_experience([ACME, INITECH], ["only one"]) == [ACME, INITECH]


def test_records_matched_by_position_keep_structured_fields():
    enhanced = [
        {"role": "Staff Engineer", "company": "", "points": ["Led X"]},
        {"role": "CEO", "points": []},
    ]
    assert merge_enhanced_experience([ACME, INITECH], enhanced) == [
        {**ACME, "points": ["Led X"]},
        INITECH,
    ]


def test_record_count_mismatch_keeps_original():
    assert merge_enhanced_experience([ACME], [{"points": ["x"]}, {"points": ["y"]}]) == [ACME]


def test_nothing_to_merge():
    assert merge_enhanced_experience([ACME], None) == [ACME]
    assert merge_enhanced_experience([ACME], "Led X") == [ACME]
    assert merge_enhanced_experience([], ["Led X"]) == []
    assert merge_enhanced_experience([ACME], ["Led X", {"points": ["y"]}]) == [ACME]


def test_apply_enhancement_never_drops_job_titles():
    resume = ResumeData(name="Jane", email="j@x.io", summary="Engineer.", experience=[ACME])
    reply = {"summary": "Better.", "experience": ["Led X", "Shipped Y"], "skills": None, "education": None}
    with patch("backend.app.services.resume_service.enhance_resume", return_value=reply):
        enhanced = apply_enhancement(resume)
    [entry] = enhanced.experience
    assert (entry.role, entry.company, entry.duration, entry.location) == ("Engineer", "Acme", "2020-2022", "Remote")
    assert entry.points == ["Led X", "Shipped Y"]
    assert enhanced.summary == "Better."


def test_apply_enhancement_untouched_when_enhancer_returns_input():
    resume = ResumeData(name="Jane", email="j@x.io", summary="Engineer.", experience=[ACME])
    with patch("backend.app.services.resume_service.enhance_resume", side_effect=lambda raw: raw):
        assert apply_enhancement(resume) is resume


def test_numeric_contact_fields_coerced_to_text():
    resume = ResumeData(name="Jane", email="j@x.io", summary="Engineer.", phone=5550100)
    assert resume.phone == "5550100"
