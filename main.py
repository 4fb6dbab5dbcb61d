import sys

from rich.console import Console
from rich.pretty import pprint

from paramlib import *

console = Console()

registry = Registry(
    Boolean("enable", NO_ARGUMENT, "e", descr="turn the feature on"),
    Integer("start", REQUIRED_ARGUMENT, "s", descr="starting index"),
    Float("pi", REQUIRED_ARGUMENT, "p", descr="an approximation of pi"),
    Text("file", REQUIRED_ARGUMENT, "f", descr="input path"),
    Boolean("next", NO_ARGUMENT, "n", pause=True, descr="report, then keep scanning"),
)


if __name__ == '__main__':
    session = Session(sys.argv, registry, shell=True, deferred=True)

    while True:
        reason, index = session.process()

        for parameter in registry:
            console.print(str(parameter), highlight=False)

        console.print("\nResidual arguments:", " ".join(map(repr, session.args[index:])), highlight=False)

        if reason is ExitState.NO_MORE_ARGS:
            break

    pprint(registry)
