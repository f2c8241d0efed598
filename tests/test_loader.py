import json

import pytest

from blockarm.blocks import (IfElse, MoveTo, Program, Repeat, WaitSeconds, WhileLoop,
                             load_program, load_program_file)
from blockarm.errors import ValidationError


def block(block_id, kind, children=None, **parameters):
    return {
        "id": block_id,
        "definitionId": kind,
        "x": 0,
        "y": 0,
        "parameters": parameters,
        "children": children or [],
    }


def test_list_of_blocks():
    program = load_program([
        block("a", "move_to", joint="shoulder", angle=120),
        block("b", "open_gripper"),
    ])

    assert isinstance(program, Program)
    assert len(program) == 2
    move = program.blocks[0]
    assert isinstance(move, MoveTo)
    assert (move.joint, move.servo_id, move.angle) == ("shoulder", 2, 120.0)


def test_project_object_keeps_version():
    program = load_program({"metadata": {"version": "1.0.0"}, "blocks": [block("a", "home_robot")]})

    assert program.version == "1.0.0"
    assert program.leaf_count() == 1


def test_project_without_version_is_rejected():
    with pytest.raises(ValidationError):
        load_program({"metadata": {}, "blocks": []})


def test_defaults_come_from_registry():
    program = load_program([block("w", "wait_seconds"), block("r", "repeat")])

    assert program.blocks[0].seconds == 1.0
    assert program.blocks[1].times == 3


def test_numeric_strings_are_coerced():
    program = load_program([
        block("w", "wait_seconds", seconds="2.5"),
        block("r", "repeat", times="4"),
        block("i", "if_condition", condition="false"),
    ])

    assert program.blocks[0].seconds == 2.5
    assert program.blocks[1].times == 4
    assert program.blocks[2].condition is False


def test_angle_is_clamped_to_joint_range():
    program = load_program([block("a", "move_to", joint="base", angle=10)])

    assert program.blocks[0].angle == 70.0


def test_nested_children_and_else_slot():
    else_child = dict(block("c2", "close_gripper"), childSlot="else")
    program = load_program([
        block("r", "repeat", times=2, children=[
            block("w", "while_loop", children=[block("m", "move_to", joint="elbow", angle=100)]),
        ]),
        block("ie", "if_else", condition=True, children=[block("c1", "open_gripper"), else_child]),
    ])

    repeat = program.blocks[0]
    assert isinstance(repeat, Repeat)
    assert isinstance(repeat.children[0], WhileLoop)
    if_else = program.blocks[1]
    assert isinstance(if_else, IfElse)
    assert [b.id for b in if_else.children] == ["c1"]
    assert [b.id for b in if_else.else_children] == ["c2"]
    assert [b.id for b in program.walk()] == ["r", "w", "m", "ie", "c1", "c2"]
    assert program.leaf_count() == 3


def test_kind_alias():
    raw = block("a", "open_gripper")
    raw["kind"] = raw.pop("definitionId")

    assert load_program([raw]).blocks[0].kind == "open_gripper"


@pytest.mark.parametrize("mutate, message", [
    (lambda b: b.pop("id"), "invalid id"),
    (lambda b: b.update(id=""), "invalid id"),
    (lambda b: b.pop("definitionId"), "definitionId"),
    (lambda b: b.update(x="10"), "x and y"),
    (lambda b: b.pop("y"), "x and y"),
    (lambda b: b.update(parameters=[]), "parameters"),
    (lambda b: b.update(children=None), "children"),
    (lambda b: b.update(definitionId="fly_away"), "unknown block"),
])
def test_malformed_blocks(mutate, message):
    raw = block("a", "home_robot")
    mutate(raw)

    with pytest.raises(ValidationError) as info:
        load_program([raw])
    assert message in str(info.value)
    assert info.value.path == "blocks[0]"


def test_error_path_points_into_children():
    bad_child = block("c", "wait_seconds")
    bad_child["x"] = None

    with pytest.raises(ValidationError) as info:
        load_program([block("ok", "home_robot"), block("r", "repeat", children=[bad_child])])
    assert info.value.path == "blocks[1].children[0]"


def test_duplicate_ids_rejected():
    with pytest.raises(ValidationError, match="duplicate id 'a'"):
        load_program([block("a", "repeat", children=[block("a", "open_gripper")])])


def test_children_on_leaf_rejected():
    with pytest.raises(ValidationError, match="cannot have children"):
        load_program([block("a", "open_gripper", children=[block("b", "home_robot")])])


def test_else_slot_only_on_if_else():
    child = dict(block("b", "home_robot"), childSlot="else")

    with pytest.raises(ValidationError, match="childSlot"):
        load_program([block("a", "repeat", children=[child])])


@pytest.mark.parametrize("kind, parameters", [
    ("repeat", {"times": 0}),
    ("repeat", {"times": 1000}),
    ("repeat", {"times": 2.5}),
    ("repeat", {"times": "many"}),
    ("wait_seconds", {"seconds": 61}),
    ("wait_seconds", {"seconds": -1}),
    ("move_to", {"joint": "base", "angle": 400}),
    ("move_to", {"joint": "tail", "angle": 90}),
    ("if_condition", {"condition": "maybe"}),
    ("while_loop", {"condition": 1}),
])
def test_parameter_schema(kind, parameters):
    with pytest.raises(ValidationError):
        load_program([block("a", kind, **parameters)])


def test_top_level_must_be_list_or_project():
    with pytest.raises(ValidationError):
        load_program("moveTo('base', 90)")


def test_load_program_file(tmp_path):
    path = tmp_path / "demo.json"
    path.write_text(json.dumps({
        "metadata": {"name": "demo", "version": "1.0.0"},
        "blocks": [block("w", "wait_seconds", seconds=2)],
    }))

    program = load_program_file(path)

    assert isinstance(program.blocks[0], WaitSeconds)


def test_load_program_file_yaml(tmp_path):
    path = tmp_path / "demo.yaml"
    path.write_text(
        "- {id: a, definitionId: close_gripper, x: 0, y: 0, parameters: {}, children: []}\n"
    )

    assert load_program_file(path).blocks[0].kind == "close_gripper"


def test_load_program_file_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    with pytest.raises(ValidationError):
        load_program_file(path)


def test_load_program_file_not_utf8(tmp_path):
    path = tmp_path / "binary.json"
    path.write_bytes(b"[\xff\xfe]")

    with pytest.raises(ValidationError, match="Could not parse"):
        load_program_file(path)
