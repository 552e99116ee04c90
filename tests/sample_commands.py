"""Command types shared by the test suite."""

from sancf import command, subcommand, tab_complete


@command("give", aliases=["g", "gv"], permission="plugin.give", allow_console=False)
class Give:
    def __init__(self):
        self.calls = []

    def execute(self, ctx):
        self.calls.append(("root", ctx.args))

    @subcommand("Item")
    @tab_complete("sword,shield", "@players")
    def item(self, ctx):
        self.calls.append(("item", ctx.args))

    @subcommand("secret", permission="plugin.give.secret")
    def secret(self, ctx):
        self.calls.append(("secret", ctx.args))


@command("info")
class Info:
    """No root handler, console allowed."""

    def __init__(self):
        self.calls = []

    @subcommand("version")
    def version(self, ctx):
        self.calls.append("version")


class NotACommand:
    pass
