from resumecraft.core.orchestrator import strip_change_markup


def test_strip_change_markup_keeps_final_text() -> None:
    markdown = "I have experience with <del>React</del><ins>React.js</ins> and <ins>Go</ins>."

    assert strip_change_markup(markdown) == "I have experience with React.js and Go."


def test_strip_change_markup_handles_multiline_deletions() -> None:
    markdown = "Summary\n<del>Old line one\nold line two</del>\nKept line"

    assert strip_change_markup(markdown) == "Summary\n\nKept line"


def test_plain_text_is_unchanged() -> None:
    assert strip_change_markup("# Jane Doe\n- Go") == "# Jane Doe\n- Go"
