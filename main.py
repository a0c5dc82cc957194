from rich.pretty import pprint

from switchboard import *


def build(commands):
    settings = {"release": False, "target": None, "sources": []}

    def release():
        settings["release"] = True

    def target(value):
        settings["target"] = value

    options = OptionSet(
        "usage: main.py build [options] <sources>",
        ("r|release", "build with optimizations", release),
        ("t=|target=", "the {triple} to build for", target),
        ("<>", "source files", settings["sources"].append),
    )
    yield options
    pprint(settings)


def base(commands, command_not_found):
    show = []
    yield OptionSet(("h|help", "show this help", lambda: show.append(True)))
    if show or command_not_found:
        commands.print_help()


if __name__ == '__main__':
    SubCommandSet(
        "usage: main.py <command> [options]",
        base,
        ("build", "compile the sources", build),
    ).parse()
