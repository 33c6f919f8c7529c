"""Tests for raw form text -> canonical section items"""
from backend.app.services.field_parser import (
    coerce_section,
    normalize_experience,
    normalize_points,
    normalize_project,
    parse_certifications,
    parse_education,
    parse_experience,
    parse_projects,
    parse_skills,
)


def test_skills_split_on_comma_and_drop_empty():
    assert parse_skills("Python, , SQL ,Go,") == ["Python", "SQL", "Go"]
    assert parse_skills("") == []
    assert parse_skills(None) == []


def test_certifications_one_per_line():
    assert parse_certifications("AWS SAA\n\n  CKA  \n") == ["AWS SAA", "CKA"]


def test_education_positional_parts():
    assert parse_education("B.Tech, MIT, 2025") == [
        {"degree": "B.Tech", "institution": "MIT", "year": "2025"}
    ]


def test_education_without_comma_is_degree_only():
    assert parse_education("Self-taught") == [{"degree": "Self-taught", "institution": "", "year": ""}]


def test_education_extra_parts_join_into_year():
    [item] = parse_education("M.Sc, ETH Zurich, 2019, with distinction")
    assert item["year"] == "2019, with distinction"


def test_education_line_without_degree_dropped():
    assert parse_education(", ,\nBSc, Oxford") == [{"degree": "BSc", "institution": "Oxford", "year": ""}]


def test_experience_role_at_company_dash_duration():
    [item] = parse_experience("Engineer at Acme - 2020-2022")
    assert item["role"] == "Engineer"
    assert item["company"] == "Acme"
    assert item["duration"] == "2020-2022"
    assert item["location"] == ""


def test_experience_role_at_company_without_duration():
    [item] = parse_experience("Intern at Initech")
    assert (item["role"], item["company"], item["duration"]) == ("Intern", "Initech", "")


def test_experience_role_dash_duration():
    [item] = parse_experience("Freelance Developer - 2018 - 2020")
    assert item["role"] == "Freelance Developer"
    assert item["company"] == ""
    assert item["duration"] == "2018 - 2020"


def test_experience_comma_separated():
    [item] = parse_experience("Engineer, Acme, Jan 2020, Dec 2021")
    assert (item["role"], item["company"], item["duration"]) == ("Engineer", "Acme", "Jan 2020, Dec 2021")


def test_experience_unparseable_line_kept_as_point():
    [item] = parse_experience("Led a team of five to migrate billing")
    assert item["role"] == "" and item["company"] == "" and item["duration"] == ""
    assert item["points"] == ["Led a team of five to migrate billing"]


def test_experience_parsed_line_has_no_placeholder_point():
    [item] = parse_experience("Engineer at Acme - 2020")
    assert item["points"] == []


def test_experience_first_strategy_wins():
    # contains " at ", " - " and "," -> the "at" pattern alone applies
    [item] = parse_experience("Lead, Platform at Acme, Inc - 2021")
    assert item["role"] == "Lead, Platform"
    assert item["company"] == "Acme, Inc"
    assert item["duration"] == "2021"


def test_projects_title_tech_duration():
    assert parse_projects("Chat App - React, Node - 2023\nCLI tool") == [
        {"title": "Chat App", "duration": "2023", "subtitle": "", "tech": "React, Node", "points": []},
        {"title": "CLI tool", "duration": "", "subtitle": "", "tech": "", "points": []},
    ]


def test_normalize_points_accepts_strings_and_text_objects():
    assert normalize_points(["a", {"text": "b"}, {"text": ""}, "  "]) == ["a", "b"]
    assert normalize_points(None) == []


def test_normalize_project_bare_string_matches_record():
    assert normalize_project("Resume Builder") == normalize_project(
        {"title": "Resume Builder", "tech": "", "duration": "", "points": []}
    )


def test_normalize_project_pipe_delimited_string():
    assert normalize_project("Site | 2022 | Personal | Hugo | Wrote theme; Set up CI") == {
        "title": "Site",
        "duration": "2022",
        "subtitle": "Personal",
        "tech": "Hugo",
        "points": ["Wrote theme", "Set up CI"],
    }


def test_normalize_project_without_title_dropped():
    assert normalize_project({"title": "", "tech": "Go"}) is None
    assert normalize_project("") is None


def test_normalize_experience_bare_string_is_single_point():
    item = normalize_experience("Shipped the v2 API")
    assert item["role"] == ""
    assert item["points"] == ["Shipped the v2 API"]


def test_normalize_experience_missing_fields_are_empty():
    item = normalize_experience({"role": "Dev"})
    assert item == {"role": "Dev", "company": "", "duration": "", "location": "", "points": []}


def test_coerce_section_text_and_lists():
    assert coerce_section("technical_skills", "Go, Rust") == ["Go", "Rust"]
    assert coerce_section("technical_skills", ["Go", " ", "Rust"]) == ["Go", "Rust"]
    assert coerce_section("education", [{"degree": "BSc", "college": "UCL"}, "PhD"]) == [
        {"degree": "BSc", "institution": "UCL", "year": ""},
        {"degree": "PhD", "institution": "", "year": ""},
    ]
    assert coerce_section("projects", [{"tech": "no title"}]) == []
    assert coerce_section("experience", None) == []
