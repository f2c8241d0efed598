from blockarm.blocks import (CloseGripper, IfElse, MoveTo, OpenGripper, Program, Repeat,
                             WaitSeconds, create_default_registry, generate_code, load_program)
from blockarm.blocks.codegen import format_value


def test_leaf_templates():
    registry = create_default_registry()
    program = Program((
        MoveTo("a", joint="elbow", servo_id=3, angle=90.0),
        WaitSeconds("b", seconds=1.5),
        OpenGripper("c"),
    ))

    assert generate_code(program, registry) == (
        "moveTo('elbow', 90);\n"
        "wait(1.5);\n"
        "openGripper();"
    )


def test_nested_children_are_indented():
    registry = create_default_registry()
    inner = Repeat("inner", children=(OpenGripper("o"),), times=2)
    program = Program((Repeat("outer", children=(inner, CloseGripper("c")), times=3),))

    assert generate_code(program, registry) == (
        "for (let i = 0; i < 3; i++) {\n"
        "  for (let i = 0; i < 2; i++) {\n"
        "    openGripper();\n"
        "  }\n"
        "  closeGripper();\n"
        "}"
    )


def test_if_else_renders_both_branches():
    registry = create_default_registry()
    program = Program((IfElse("i", children=(OpenGripper("o"),), condition=False,
                              else_children=(CloseGripper("c"),)),))

    assert generate_code(program, registry) == (
        "if (false) {\n"
        "  openGripper();\n"
        "} else {\n"
        "  closeGripper();\n"
        "}"
    )


def test_empty_body():
    registry = create_default_registry()
    program = load_program([{"id": "w", "definitionId": "while_loop", "x": 0, "y": 0,
                             "parameters": {}, "children": []}])

    assert generate_code(program, registry) == "while (true) {\n}"


def test_format_value():
    assert format_value(True) == "true"
    assert format_value(180.0) == "180"
    assert format_value(0.25) == "0.25"
    assert format_value("base") == "base"
