import pytest

from iris_worker.models.summary import ProjectSummary
from iris_worker.services import heuristics as h


def test_empty_text_gives_empty_summary():
    assert h.extract_summary("") == ProjectSummary()
    assert h.extract_summary("   \n\n ") == ProjectSummary()


def test_helios_transcript_extracts_every_field():
    text = "The project is called Helios, starts 2024-11-10, ends 2025-04-20, budget 78k"
    assert h.extract_summary(text) == ProjectSummary(
        title="Helios", start_date="2024-11-10", end_date="2025-04-20", budget=78000
    )


@pytest.mark.parametrize(
    "text",
    [
        "",
        "{}",
        "start 99/99/9999 and end 31/02/2025",
        "budget 0k, budget of 0 euros",
        "ends late Feb 0000",
        "Project",
        "called it",
        "€€€ 12,",
        "start start start end end end",
    ],
)
def test_extractor_never_raises(text):
    summary = h.extract_summary(text)
    assert isinstance(summary, ProjectSummary)


# ------------------------------- Title ------------------------------------
@pytest.mark.parametrize(
    "text,expected",
    [
        ("The working name is RoomFlow.", "RoomFlow"),
        ("So the project... we called it cleverClass. It should start soon.", "CleverClass"),
        ("We're launching a project named Iris School App. No end date yet.", "Iris School App"),
        ("Project Helios. Start 2024-11-10, end planned 2025-04-20.", "Helios"),
        ("it's called nova and we love it", "Nova"),
        ("We named it Orion of.", "Orion"),
    ],
)
def test_title_phrasings(text, expected):
    assert h.extract_title(text) == expected


def test_title_rejects_filler_only_capture():
    assert h.extract_title("The name is the.") is None


def test_title_rejects_descriptions():
    assert h.extract_title("We're launching a platform that manages room bookings.") is None


def test_title_ignores_lowercase_project_phrase():
    assert h.extract_title("project management is hard") is None


def test_clean_title_strips_trailing_filler_and_capitalizes():
    assert h.clean_title("  eco   route and the ") == "Eco Route"
    assert h.clean_title("x") is None
    assert h.clean_title("build a booking tool") is None


def test_title_earlier_pattern_wins():
    text = "Project Apollo was the old idea. The name is Zephyr."
    assert h.extract_title(text) == "Zephyr"


# ------------------------------- Dates ------------------------------------
def test_mid_month_resolves_to_fifteenth():
    assert h.extract_start_date("We start mid-March 2026.") == "2026-03-15"
    assert h.extract_start_date("Kick off around the middle of October 2025") == "2025-10-15"


def test_late_february_respects_leap_years():
    assert h.extract_end_date("The project ends late February 2024.") == "2024-02-29"
    assert h.extract_end_date("The project ends late February 2025.") == "2025-02-28"


def test_early_and_unqualified_start_is_first_of_month():
    assert h.extract_start_date("We start early April.") == "2025-04-01"
    assert h.extract_start_date("We should begin in June 2025") == "2025-06-01"


def test_unqualified_end_month_is_last_day():
    assert h.extract_end_date("It should end in June.") == "2025-06-30"
    assert h.extract_end_date("we finish at the end of September 2025") == "2025-09-30"


def test_missing_year_uses_reference_year():
    assert h.extract_start_date("We start early April.", reference_year=2030) == "2030-04-01"


def test_numeric_dates_are_day_first():
    assert h.extract_start_date("Kickoff on 03/02/2025") == "2025-02-03"
    assert h.extract_end_date("deadline: 1.7.26") == "2026-07-01"


def test_day_month_and_month_day():
    assert h.extract_start_date("Start planned on 1st February 2025") == "2025-02-01"
    assert h.extract_end_date("The deadline is June 30th, 2025") == "2025-06-30"


def test_impossible_date_is_skipped():
    assert h.extract_start_date("We start on 31/02/2025") is None


def test_finish_before_summer():
    assert h.extract_end_date("We need to finish before summer.") == "2025-06-30"
    assert h.extract_end_date("We need to finish it before the summer", reference_year=2026) == "2026-06-30"


def test_start_from_and_delivery_phrasings():
    assert h.extract_start_date("Available from 15 September 2025") == "2025-09-15"
    assert h.extract_end_date("Delivery in October 2025") == "2025-10-31"


def test_start_and_end_in_one_sentence():
    text = "We start in March 2025 and finish on 20 June 2025."
    assert h.extract_start_date(text) == "2025-03-01"
    assert h.extract_end_date(text) == "2025-06-20"


def test_modal_may_is_not_a_month():
    assert h.extract_start_date("The start may be delayed") is None


# ------------------------------- Budget -----------------------------------
@pytest.mark.parametrize(
    "text,expected",
    [
        ("budget 78k", 78000),
        ("We need about 15K for this", 15000),
        ("We have 3 people and 15k", 15000),
        ("The budget is 12,500 euros", 12500),
        ("Budget: I think we have 5,000 euros for the first version", 5000),
        ("Le budget: 12 500 €", 12500),
        ("It costs €2,500.", 2500),
        ("Budget around 2000", 2000),
        ("Roughly 1.5k", 1500),
    ],
)
def test_budget_patterns(text, expected):
    assert h.extract_budget(text) == expected


def test_budget_first_pattern_wins():
    assert h.extract_budget("Our budget is 20k but we have 5000 euros") == 20000


def test_budget_rejects_non_positive_amounts():
    assert h.extract_budget("budget of 0 euros") is None


def test_no_budget_mentioned():
    assert h.extract_budget("We start in March 2025") is None


def test_first_match_skips_empty_matchers():
    class Never(h.Matcher):
        def attempt(self, text):
            return None

    class Always(h.Matcher):
        def attempt(self, text):
            return 42

    assert h.first_match([Never(), Always(), Never()], "anything") == 42
    assert h.first_match([Never()], "anything") is None


def test_k_shorthand_outranks_later_full_amount():
    # rank order is the contract: a "k" amount anywhere beats "budget ... N euros"
    assert h.extract_budget("The budget is 78 000 euros and we need 4k screens") == 4000


def test_title_keeps_inner_capital_brand_words():
    assert h.clean_title("iPhone helper") == "iPhone Helper"
    assert h.clean_title("ecoRoute") == "EcoRoute"
