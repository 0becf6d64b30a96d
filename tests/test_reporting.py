import pytest

from classroom.services import reporting


def _counts(distribution):
    return {row["range"]: row["count"] for row in distribution}


@pytest.mark.parametrize(
    "percentage, expected",
    [
        (0, 0),
        (5, 0),
        (10, 0),
        (10.5, 1),
        (20, 1),
        (20.01, 2),
        (85, 8),
        (90, 8),
        (90.5, 9),
        (100, 9),
        (120, 9),
        (-5, 0),
    ],
)
def test_grade_bin_index(percentage, expected):
    assert reporting.grade_bin_index(percentage) == expected


def test_full_marks_and_zero_land_in_outer_bins():
    counts = _counts(reporting.grade_distribution([(100, 100), (0, 100), (50, 50)]))

    assert counts["91-100%"] == 2
    assert counts["0-10%"] == 1
    assert sum(counts.values()) == 3


def test_every_integer_percentage_lands_in_exactly_one_bin():
    distribution = reporting.grade_distribution([(grade, 100) for grade in range(101)])

    assert len(distribution) == 10
    assert sum(row["count"] for row in distribution) == 101
    assert [row["range"] for row in distribution] == reporting.GRADE_BINS


def test_grade_distribution_skips_ungraded_and_pointless_rows():
    counts = _counts(reporting.grade_distribution([(None, 100), (5, 0), (5, None), (7, 10)]))

    assert sum(counts.values()) == 1
    assert counts["61-70%"] == 1


def test_grade_distribution_empty():
    distribution = reporting.grade_distribution([])
    assert all(row["count"] == 0 for row in distribution)


def test_at_risk_flags_three_missing_not_two():
    assignments = [(a, 1) for a in range(1, 6)]
    enrollments = [(10, 1), (20, 1)]
    submissions = [(10, 1), (10, 2)] + [(20, 1), (20, 2), (20, 3)]

    flagged = reporting.at_risk_students(enrollments, assignments, submissions, threshold=3)

    assert flagged == [{"student_id": 10, "assigned": 5, "submitted": 2, "missing": 3}]


def test_at_risk_counts_only_work_in_enrolled_classes():
    assignments = [(1, 1), (2, 1), (3, 2), (4, 2), (5, 2)]
    enrollments = [(10, 1)]
    # A stray submission to a class the student is not in does not offset missing work
    submissions = [(10, 3)]

    assert reporting.at_risk_students(enrollments, assignments, submissions, threshold=3) == []
    flagged = reporting.at_risk_students(enrollments, assignments, submissions, threshold=2)
    assert flagged[0]["missing"] == 2
    assert flagged[0]["submitted"] == 0


def test_at_risk_orders_by_missing_descending():
    assignments = [(a, 1) for a in range(1, 7)]
    enrollments = [(1, 1), (2, 1), (3, 1)]
    submissions = [(1, 1), (1, 2), (1, 3), (2, 1)]

    flagged = reporting.at_risk_students(enrollments, assignments, submissions, threshold=3)

    assert [row["student_id"] for row in flagged] == [3, 2, 1]


def test_at_risk_empty_inputs():
    assert reporting.at_risk_students([], [], []) == []


def test_top_teachers_ranks_by_distinct_students():
    teachers = [(1, "Ada"), (2, "Grace"), (3, "Linus")]
    classes = [(100, 1), (101, 1), (200, 2)]
    # Student 7 is in both of Ada's classes and counts once
    enrollments = [(7, 100), (7, 101), (8, 200), (9, 200)]

    ranked = reporting.top_teachers(teachers, classes, enrollments)

    assert [row["teacher_id"] for row in ranked] == [2, 1, 3]
    assert ranked[0] == {"teacher_id": 2, "name": "Grace", "class_count": 1, "student_count": 2}
    assert ranked[1]["class_count"] == 2
    assert ranked[1]["student_count"] == 1
    assert ranked[2]["student_count"] == 0


def test_top_teachers_limit():
    teachers = [(i, f"T{i}") for i in range(8)]
    assert len(reporting.top_teachers(teachers, [], [])) == 5
    assert reporting.top_teachers([], [], []) == []


def test_role_counts_and_safe_ratio():
    counts = reporting.role_counts(["student", "student", "teacher", "admin"])
    assert counts == {"student": 2, "teacher": 1, "admin": 1, "total": 4}

    assert reporting.safe_ratio(5, 0) == 0.0
    assert reporting.safe_ratio(10, 4) == 2.5


def test_score_display():
    assert reporting.score_display(85, 100) == {"score": "85/100", "percentage": 85}
    assert reporting.score_display(7, 8) == {"score": "7/8", "percentage": 88}
    assert reporting.score_display(None, 100) is None
