from blockarm.blocks import BlockCategory, BlockDefinition, BlockRegistry, create_default_registry


def test_default_palette():
    registry = create_default_registry()

    assert len(registry) == 9
    assert [c.id for c in registry.all_categories()] == ["motion", "control", "gripper"]
    assert [b.id for b in registry.get_blocks_by_category("gripper")] == ["open_gripper", "close_gripper"]
    assert "while_loop" in registry
    assert "fly_away" not in registry


def test_move_to_definition():
    move = create_default_registry().get_block("move_to")

    joint = move.get_parameter("joint")
    assert joint.options == ["base", "shoulder", "elbow", "wrist_flex", "wrist_roll", "gripper"]
    assert joint.default_value == "base"
    angle = move.get_parameter("angle")
    assert (angle.min, angle.max) == (0, 360)
    assert move.code_template == "moveTo('{{joint}}', {{angle}});"
    assert not move.has_children


def test_compound_blocks_have_children():
    registry = create_default_registry()

    compound = [b.id for b in registry.all_blocks() if b.has_children]
    assert compound == ["repeat", "if_condition", "if_else", "while_loop"]


def test_registries_are_independent():
    first = create_default_registry()
    second = BlockRegistry()

    second.register_category(BlockCategory("extra", "Extra", "hsl(0, 0%, 50%)"))
    second.register_block(BlockDefinition("beep", "extra", "beep", "beep();"))

    assert "beep" in second
    assert "beep" not in first
    assert second.get_block("move_to") is None


def test_definition_json_uses_camel_case():
    data = create_default_registry().get_block("wait_seconds").to_dict()

    assert data["codeTemplate"] == "wait({{seconds}});"
    assert data["parameters"][0]["defaultValue"] == 1.0

    restored = BlockDefinition.from_dict(data)
    assert restored.get_parameter("seconds").max == 60
