from imbue.imbue_common.pure import pure


def test_pure_decorator_returns_the_same_function() -> None:
    def is_expired(start: float, now: float, budget: float) -> bool:
        return now - start > budget

    assert pure(is_expired) is is_expired
    assert is_expired(0.0, 2.0, 1.0)


def test_pure_decorator_preserves_function_name() -> None:
    @pure
    def my_function() -> str:
        return "hello"

    assert my_function.__name__ == "my_function"
