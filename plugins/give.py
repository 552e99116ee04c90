"""Example plugin: ``/give`` with an ``item`` subcommand."""

from sancf import command, subcommand, tab_complete


@command(
    "give",
    aliases=["g", "gv"],
    permission="sancf.give",
    usage="/give item <item> [player]",
    description="Hand an item to a player",
)
class Give:
    def execute(self, ctx):
        ctx.send_usage_message()

    @subcommand("item")
    @tab_complete("@items", "@players")
    def item(self, ctx):
        item, target = ctx.arg(1), ctx.arg(2) or getattr(ctx.sender, "name", "you")
        if item is None:
            ctx.send_usage_message()
            return
        ctx.send_message(f"&aGave &f{item}&a to &f{target}")

    @subcommand("list", permission="sancf.give.list")
    def list_items(self, ctx):
        ctx.send_message("&7Use tab completion after 'give item' to browse items.")


@command("ping", description="Check that the console is responsive", run_async=True)
class Ping:
    def execute(self, ctx):
        ctx.send_message("&aPong!")
