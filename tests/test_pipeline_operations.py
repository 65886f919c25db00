import pytest

import pipeline
from lazy import GeneratorOwnershipError, generator_of
from ranges import ranges_of


def gen(*values):
    return generator_of(values)


class TestGeneratorToGenerator:
    """Test operations that produce a new generator"""

    def test_enumerate(self):
        """Test zero-based index pairing"""
        result = list(pipeline.enumerate(gen(10, 20, 30)))
        assert result == [(0, 10), (1, 20), (2, 30)]

    def test_transforms(self):
        result = list(pipeline.transforms(gen(1, 2, 3), lambda x: x * x))
        assert result == [1, 4, 9]

    def test_transforms_can_change_type(self):
        result = list(pipeline.transforms(gen(1, 2), str))
        assert result == ["1", "2"]

    def test_filters(self):
        result = list(pipeline.filters(gen(1, 2, 3, 4, 5), lambda x: x % 2 == 0))
        assert result == [2, 4]

    def test_extract_is_inverse_of_filters(self):
        """Test extract keeps what filters drops"""
        result = list(pipeline.extract(gen(1, 2, 3, 4, 5), lambda x: x % 2 == 0))
        assert result == [1, 3, 5]

    def test_filters_uses_truthiness(self):
        result = list(pipeline.filters(gen(0, 1, "", "a", None, [1]), lambda x: x))
        assert result == [1, "a", [1]]

    def test_zip_stops_at_shorter_source(self):
        """Test lockstep pairing with shorter-source-wins"""
        result = list(pipeline.zip(gen(1, 2, 3), gen("a", "b")))
        assert result == [(1, "a"), (2, "b")]

        result = list(pipeline.zip(gen(1), gen("a", "b", "c")))
        assert result == [(1, "a")]

    def test_zip_with_empty_source(self):
        assert list(pipeline.zip(gen(), gen(1, 2))) == []
        assert list(pipeline.zip(gen(1, 2), gen())) == []

    def test_zip_never_pulls_second_past_first(self):
        """Test the right side is not advanced once the left side ran out"""
        pulled = []

        def note(x):
            pulled.append(x)
            return x

        right = pipeline.transforms(gen(1, 2, 3, 4), note)
        assert list(pipeline.zip(gen("a", "b"), right)) == [("a", 1), ("b", 2)]
        assert pulled == [1, 2]

    def test_join_concatenates(self):
        """Test first source is drained before the second"""
        assert list(pipeline.join(gen(1, 2, 3), gen(4, 5))) == [1, 2, 3, 4, 5]

    def test_join_converts_second_source(self):
        result = list(pipeline.join(gen(1.5, 2.5), gen(3, 4), convert=float))
        assert result == [1.5, 2.5, 3.0, 4.0]
        assert all(isinstance(v, float) for v in result)

    def test_join_with_empty_sides(self):
        assert list(pipeline.join(gen(), gen(1))) == [1]
        assert list(pipeline.join(gen(1), gen())) == [1]

    def test_flatten_pairs(self):
        """Test each pair expands into two outputs"""
        assert list(pipeline.flatten(gen((1, 2), (3, 4)))) == [1, 2, 3, 4]

    def test_flatten_converts_second_element(self):
        result = list(pipeline.flatten(gen((1.0, 2), (3.0, 4)), convert=float))
        assert result == [1.0, 2.0, 3.0, 4.0]

    def test_flatten_rejects_non_pairs(self):
        flat = pipeline.flatten(gen((1, 2), (3, 4, 5)))
        assert flat.next().value() == 1
        assert flat.next().value() == 2
        with pytest.raises(ValueError):
            flat.next()

    def test_take(self):
        assert list(pipeline.take(gen(1, 2, 3, 4, 5), 3)) == [1, 2, 3]

    def test_take_more_than_available(self):
        assert list(pipeline.take(gen(1, 2), 10)) == [1, 2]

    def test_take_zero(self):
        assert list(pipeline.take(gen(1, 2), 0)) == []

    def test_skip(self):
        assert list(pipeline.skip(gen(1, 2, 3, 4, 5), 2)) == [3, 4, 5]

    def test_skip_more_than_available(self):
        """Test skipping past the end yields nothing"""
        assert list(pipeline.skip(gen(1, 2), 5)) == []

    def test_skip_zero(self):
        assert list(pipeline.skip(gen(1, 2), 0)) == [1, 2]

    def test_negative_counts_are_rejected(self):
        with pytest.raises(ValueError):
            pipeline.take(gen(1), -1)
        with pytest.raises(ValueError):
            pipeline.skip(gen(1), -1)

    def test_counts_must_be_integers(self):
        with pytest.raises(TypeError):
            pipeline.take(gen(1), 1.5)

    @pytest.mark.parametrize("operation", [pipeline.take, pipeline.skip])
    def test_rejected_count_leaves_source_with_caller(self, operation):
        """Test a bad count fails before the source changes owner"""
        source = gen(7, 8)
        with pytest.raises(ValueError):
            operation(source, -1)
        assert source.released is False
        assert source.next().value() == 7

    @pytest.mark.parametrize("operation", [pipeline.take, pipeline.skip])
    def test_curried_count_is_checked_when_stage_is_built(self, operation):
        source = gen(7, 8)
        with pytest.raises(ValueError):
            source | operation(-1)
        assert source.released is False
        assert list(source) == [7, 8]


class TestGeneratorToResult:
    """Test terminal operations"""

    def test_count(self):
        assert pipeline.count(gen(1, 2, 3, 4, 5)) == 5
        assert pipeline.count(gen()) == 0

    def test_count_with_predicate(self):
        assert pipeline.count(gen(1, 2, 3, 4, 5), lambda x: x % 2 == 0) == 2

    def test_all(self):
        assert pipeline.all(gen(2, 4, 6, 8), lambda x: x % 2 == 0) is True
        assert pipeline.all(gen(2, 3, 4), lambda x: x % 2 == 0) is False

    def test_none(self):
        assert pipeline.none(gen(1, 3, 5, 7), lambda x: x % 2 == 0) is True
        assert pipeline.none(gen(1, 3, 4), lambda x: x % 2 == 0) is False

    def test_any(self):
        assert pipeline.any(gen(1, 3, 4, 5), lambda x: x % 2 == 0) is True
        assert pipeline.any(gen(1, 3, 5), lambda x: x % 2 == 0) is False

    def test_quantifiers_on_empty_source(self):
        """Test vacuous truth for all/none and falsity for any"""
        assert pipeline.all(gen(), lambda x: False) is True
        assert pipeline.none(gen(), lambda x: True) is True
        assert pipeline.any(gen(), lambda x: True) is False

    def test_position(self):
        assert pipeline.position(gen(10, 20, 30, 40), lambda x: x > 25) == 2
        assert pipeline.position(gen(10, 20), lambda x: x == 10) == 0

    def test_position_not_found_is_length(self):
        """Test the not-found result equals the number of elements seen"""
        assert pipeline.position(gen(10, 20, 30), lambda x: x > 100) == 3
        assert pipeline.position(gen(), lambda x: True) == 0

    def test_find(self):
        assert pipeline.find(gen(10, 20, 30, 40), lambda x: x > 25) == 30

    def test_find_not_found_returns_default(self):
        assert pipeline.find(gen(1, 2), lambda x: x > 5) is None
        assert pipeline.find(gen(1, 2), lambda x: x > 5, 0) == 0
        assert pipeline.find(gen(1, 2), lambda x: x > 5, default="") == ""

    def test_collect_into_set(self):
        """Test duplicates collapse"""
        assert pipeline.collect(gen(1, 2, 2, 3, 3, 3)) == {1, 2, 3}

    def test_collect_with_custom_factory(self):
        class Tracking(set):
            pass

        result = pipeline.collect(gen("a", "b", "a"), Tracking)
        assert isinstance(result, Tracking)
        assert result == {"a", "b"}

    def test_collect_into_container_class_with_generator_accessor(self):
        """Test a container type is a factory argument, not a source"""
        class OrderedBag:
            def __init__(self):
                self.items = []

            def add(self, item):
                if item not in self.items:
                    self.items.append(item)

            def generator(self):
                return generator_of(self.items)

        bag = gen(3, 1, 3, 2) | pipeline.collect(OrderedBag)
        assert isinstance(bag, OrderedBag)
        assert bag.items == [3, 1, 2]

        direct = pipeline.collect(gen(5, 5, 4), OrderedBag)
        assert direct.items == [5, 4]
        assert pipeline.list(direct) == [5, 4], "An instance is still a source"

    def test_list_preserves_order(self):
        assert pipeline.list(gen(3, 1, 2, 1)) == [3, 1, 2, 1]

    def test_list_with_custom_factory(self):
        from collections import deque

        result = pipeline.list(gen(1, 2, 3), deque)
        assert isinstance(result, deque)
        assert result == deque([1, 2, 3])


class TestOwnershipTransfer:
    """Test that operations take their sources away from the caller"""

    def test_source_handle_is_released(self):
        source = ranges_of(0, 5)
        doubled = pipeline.transforms(source, lambda x: x * 2)
        assert source.released is True
        assert not source.next(), "Caller's handle must be unusable"
        assert list(doubled) == [0, 2, 4, 6, 8]

    def test_reusing_a_released_handle_fails(self):
        """Test passing the same generator twice is caught"""
        source = ranges_of(0, 5)
        pipeline.count(source)
        with pytest.raises(GeneratorOwnershipError):
            pipeline.count(source)

    def test_binary_operations_take_both_sources(self):
        left, right = ranges_of(0, 3), ranges_of(3, 6)
        joined = pipeline.join(left, right)
        assert left.released and right.released
        assert list(joined) == [0, 1, 2, 3, 4, 5]

    def test_containers_with_generator_accessor(self):
        """Test container sources produce a fresh generator per use"""
        class Vector:
            def __init__(self, *items):
                self.items = list(items)

            def generator(self):
                return generator_of(self.items)

        vec = Vector(1, 2, 3)
        assert pipeline.count(vec) == 3
        assert pipeline.list(pipeline.transforms(vec, lambda x: -x)) == [-1, -2, -3]
