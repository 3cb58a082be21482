from iris_worker.models.summary import ProjectSummary, count_filled_fields, has_content
from iris_worker.services.merge import describe_changes, diff_summaries, merge_summaries


def test_first_summary_is_taken_as_is():
    fresh = ProjectSummary(title="Helios", budget=78000)
    merged = merge_summaries(None, fresh)
    assert merged == fresh
    assert merged is not fresh


def test_null_never_clears_a_stored_value():
    existing = ProjectSummary(title="Helios", start_date="2024-11-10", budget=78000)
    merged = merge_summaries(existing, ProjectSummary())
    assert merged == existing


def test_last_non_null_wins_per_field():
    existing = ProjectSummary(title="Helios", start_date="2024-11-10", budget=78000)
    fresh = ProjectSummary(title="Helios 2", end_date="2025-04-20")
    assert merge_summaries(existing, fresh) == ProjectSummary(
        title="Helios 2", start_date="2024-11-10", end_date="2025-04-20", budget=78000
    )


def test_diff_reports_set_and_updated_fields():
    old = ProjectSummary(title="Helios", budget=78000)
    new = ProjectSummary(title="Helios", start_date="2024-11-10", budget=80000)
    changes = diff_summaries(old, new)
    assert [(c.field, c.kind) for c in changes] == [("start_date", "set"), ("budget", "updated")]
    assert describe_changes(changes) == ["Start date set: 2024-11-10", "Budget updated: 80000"]


def test_diff_against_nothing_lists_every_value():
    changes = diff_summaries(None, ProjectSummary(title="Nova"))
    assert describe_changes(changes) == ['Title set: "Nova"']


def test_content_helpers():
    assert not has_content(ProjectSummary())
    summary = ProjectSummary(title="Nova", budget=0)
    assert has_content(summary)
    assert count_filled_fields(summary) == 2
