from sancf import CommandDescriptor, InvocationContext
from sancf.commands.context import translate_colors
from sancf.core.host import User


def test_arg_access_is_safe():
    ctx = InvocationContext.create(User("a"), ["one", "two"])
    assert ctx.arg(0) == "one"
    assert ctx.arg(1) == "two"
    assert ctx.arg(2) is None
    assert ctx.arg(-1) is None
    assert ctx.arg_count == 2
    assert ctx.args == ("one", "two")


def test_args_are_copied():
    raw = ["a"]
    ctx = InvocationContext.create(User("a"), raw)
    raw.append("b")
    assert ctx.args == ("a",)


def test_send_message_translates_color_marker():
    user = User("a")
    ctx = InvocationContext.create(user, [])
    ctx.send_message("&aHello &lworld")
    assert user.messages == ["§aHello §lworld"]


def test_translate_colors_custom_chars():
    assert translate_colors("%cX", marker="%", native="^") == "^cX"


def test_has_permission():
    ctx = InvocationContext.create(User("a", ["x.y"]), [])
    assert ctx.has_permission("")
    assert ctx.has_permission(None)
    assert ctx.has_permission("x.y")
    assert not ctx.has_permission("x.z")


def test_fixed_message_helpers():
    user = User("a")
    descriptor = CommandDescriptor(name="give", usage="/give <item>")
    ctx = InvocationContext.create(user, [], "g", descriptor)
    ctx.send_no_permission_message()
    ctx.send_usage_message()
    ctx.send_usage_message("/give item <name>")
    assert user.messages == [
        "§cYou don't have permission to use this command.",
        "§cUsage: /give <item>",
        "§cUsage: /give item <name>",
    ]
    assert ctx.label == "g"


def test_usage_without_descriptor():
    user = User("a")
    InvocationContext.create(user, []).send_usage_message()
    assert user.messages == ["§cUsage: "]


def test_custom_marker_and_native_char():
    user = User("a")
    descriptor = CommandDescriptor(name="give", usage="/give %e<item> & more")
    ctx = InvocationContext.create(
        user, [], command=descriptor, color_marker="%", color_char="^"
    )
    ctx.send_message("%aok & fine")
    ctx.send_no_permission_message()
    ctx.send_usage_message()
    assert user.messages == [
        "^aok & fine",
        "^cYou don't have permission to use this command.",
        "^cUsage: /give ^e<item> & more",
    ]
