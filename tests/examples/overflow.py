"""Example template file for the `generate` command."""

from microtemplate import Template


class Overflow(Template):
    """Adds registers under an overflow constraint, then branches back."""

    def pre(self) -> None:
        self.label('start')

    def run(self) -> None:
        with self.sequence(combinator='product', branch={'branch_exec_limit': 3}) as seq:
            self.add(
                self.reg(1), self.reg(2), self.reg(3),
                situation=lambda t: t.situation('IntegerOverflow'),
            )
        seq.run()

    def post(self) -> None:
        self.b('start')
