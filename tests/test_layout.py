import pytest
from pydantic import ValidationError

from models.exam import Exam, LayoutConfig, Question, QuestionType
from omr.layout import (
    BubbleRegion,
    PixelRect,
    column_right_edge,
    iter_regions,
    overflowing_regions,
    resolve_layout,
)
from conftest import make_exam

PAGE = (1000, 2000)


class TestResolveLayout:
    def test_one_region_per_option(self):
        exam = make_exam(
            ["A", "T", "C", "F"],
            types=[QuestionType.SINGLE_CHOICE, QuestionType.TRUE_FALSE, QuestionType.MATCHING, QuestionType.TRUE_FALSE],
            options=5,
        )
        layouts = resolve_layout(exam.questions, exam.layoutConfig, PAGE)
        assert len(list(iter_regions(layouts))) == 5 + 2 + 5 + 2

    def test_true_false_is_f_then_t(self):
        exam = make_exam(["T"], types=[QuestionType.TRUE_FALSE])
        (layout,) = resolve_layout(exam.questions, exam.layoutConfig, PAGE)
        assert [r.label for r in layout.regions] == ["F", "T"]
        assert layout.regions[0].x < layout.regions[1].x

    def test_choice_labels_follow_option_count(self):
        exam = make_exam(["E"], options=5)
        (layout,) = resolve_layout(exam.questions, exam.layoutConfig, PAGE)
        assert [r.label for r in layout.regions] == ["A", "B", "C", "D", "E"]

    def test_first_bubble_geometry(self):
        exam = make_exam(["A", "B", "C", "D"], column_count=2, bubble_size="medium")
        first = resolve_layout(exam.questions, exam.layoutConfig, PAGE)[0].regions[0]
        assert first.x == pytest.approx(1000 * 0.10 + 1000 * 0.04)
        assert first.y == pytest.approx(2000 * 0.34)
        assert first.width == pytest.approx(1000 * 0.035)
        assert first.height == pytest.approx(2000 * 0.033 * 0.75)

    def test_options_are_spaced_left_to_right(self):
        exam = make_exam(["A"])
        regions = resolve_layout(exam.questions, exam.layoutConfig, PAGE)[0].regions
        steps = [b.x - a.x for a, b in zip(regions, regions[1:])]
        assert steps == pytest.approx([55.0, 55.0, 55.0])

    def test_rows_use_bubble_size_row_height(self):
        for size, fraction in (("small", 0.028), ("medium", 0.033), ("large", 0.040)):
            exam = make_exam(["A", "A"], column_count=1, bubble_size=size)
            first, second = resolve_layout(exam.questions, exam.layoutConfig, PAGE)
            assert second.regions[0].y - first.regions[0].y == pytest.approx(2000 * fraction)
            assert first.regions[0].height == pytest.approx(2000 * fraction * 0.75)

    def test_questions_fill_columns_in_blocks(self):
        exam = make_exam(["A"] * 7, column_count=3)
        layouts = resolve_layout(exam.questions, exam.layoutConfig, PAGE)
        assert [l.column for l in layouts] == [0, 0, 0, 1, 1, 1, 2]
        assert [l.row for l in layouts] == [0, 1, 2, 0, 1, 2, 0]

    def test_column_offset(self):
        exam = make_exam(["A", "B", "C", "D"], column_count=2)
        layouts = resolve_layout(exam.questions, exam.layoutConfig, PAGE)
        third = layouts[2]
        assert third.column == 1
        assert third.regions[0].x == pytest.approx(100 + 400 + 40)
        assert third.regions[0].y == pytest.approx(layouts[0].regions[0].y)

    def test_single_question_with_three_columns_sits_in_first_column(self):
        exam = make_exam(["B"], column_count=3)
        (layout,) = resolve_layout(exam.questions, exam.layoutConfig, PAGE)
        assert (layout.column, layout.row) == (0, 0)

    def test_no_questions_no_regions(self):
        assert resolve_layout([], LayoutConfig(columnCount=3), PAGE) == []

    def test_spacing_class_does_not_move_bubbles(self):
        questions = make_exam(["A", "B", "C"]).questions
        compact = resolve_layout(questions, LayoutConfig(bubbleSpacing="compact"), PAGE)
        wide = resolve_layout(questions, LayoutConfig(bubbleSpacing="wide"), PAGE)
        assert compact == wide

    def test_same_fractions_at_any_scale(self):
        questions = make_exam(["A", "B", "C"]).questions
        unit = resolve_layout(questions, LayoutConfig(), (1.0, 1.0))
        scaled = resolve_layout(questions, LayoutConfig(), (850, 1202))
        for small, big in zip(iter_regions(unit), iter_regions(scaled)):
            assert big.x == pytest.approx(small.x * 850)
            assert big.y == pytest.approx(small.y * 1202)


class TestPixelRects:
    def test_to_pixels_floors_each_component(self):
        region = BubbleRegion(label="A", x=10.9, y=5.2, width=29.75, height=29.99)
        assert region.to_pixels() == PixelRect(x=10, y=5, width=29, height=29)

    def test_fits(self):
        assert PixelRect(0, 0, 10, 10).fits(10, 10)
        assert not PixelRect(1, 0, 10, 10).fits(10, 10)
        assert not PixelRect(0, 5, 10, 10).fits(10, 10)
        assert not PixelRect(0, 0, 0, 10).fits(10, 10)


class TestModels:
    def test_option_count_minimum(self):
        with pytest.raises(ValidationError):
            Question(number=1, optionsCount=1, correctAnswer="A")

    def test_answer_must_be_printed_label(self):
        with pytest.raises(ValidationError, match="answer must be one of"):
            Question(number=1, optionsCount=3, correctAnswer="D")

    def test_true_false_key(self):
        with pytest.raises(ValidationError):
            Question(number=1, type=QuestionType.TRUE_FALSE, correctAnswer="A")
        assert Question(number=1, type=QuestionType.TRUE_FALSE, correctAnswer="F").labels() == ["F", "T"]

    def test_column_count_range(self):
        with pytest.raises(ValidationError):
            LayoutConfig(columnCount=4)
        with pytest.raises(ValidationError):
            LayoutConfig(columnCount=0)

    def test_layout_defaults(self):
        layout = LayoutConfig()
        assert (layout.columnCount, layout.bubbleSize.value, layout.bubbleSpacing.value) == (2, "medium", "normal")

    def test_short_size_codes(self):
        assert LayoutConfig(bubbleSize="lg").bubbleSize.value == "large"

    def test_question_numbers_must_be_contiguous(self):
        with pytest.raises(ValidationError, match="must run 1..2"):
            Exam.model_validate(
                {
                    "examId": "x",
                    "title": "t",
                    "createdAt": "2024-01-01T00:00:00",
                    "questions": [
                        {"number": 1, "correctAnswer": "A"},
                        {"number": 3, "correctAnswer": "B"},
                    ],
                }
            )


class TestColumnFit:
    def test_widest_question_per_column_count(self):
        make_exam(["J"], options=10, column_count=1)
        make_exam(["F"], options=6, column_count=2)
        make_exam(["D"], options=4, column_count=3)

    @pytest.mark.parametrize("options, columns", [(7, 2), (5, 3), (10, 3)])
    def test_too_many_options_rejected(self, options, columns):
        with pytest.raises(ValidationError, match="do not fit a %d-column layout" % columns):
            make_exam(["A"], options=options, column_count=columns)

    def test_true_false_ignores_option_count(self):
        exam = make_exam(["T"], types=[QuestionType.TRUE_FALSE], options=10, column_count=3)
        assert len(exam.questions[0].labels()) == 2

    def test_overflowing_regions(self):
        layout = LayoutConfig(columnCount=3)
        questions = [Question(number=n, optionsCount=10, correctAnswer="J") for n in (1, 2, 3)]
        layouts = resolve_layout(questions, layout, (1.0, 1.0))

        for question_layout in layouts:
            spill = overflowing_regions(question_layout, layout, 1.0)
            assert [r.label for r in spill] == ["E", "F", "G", "H", "I", "J"]
            assert column_right_edge(question_layout.column, layout, 1.0) < spill[0].x + spill[0].width

        assert column_right_edge(2, layout, 1.0) == pytest.approx(0.9)
