"""Expression evaluation tool."""

from pydantic import BaseModel, Field

from ...core.capture import capture_output
from ...core.expression import evaluate_source, pr_str
from ...core.types import CapturedOutput
from ..catalog import catalog


class EvaluateInput(BaseModel):
    expression: str = Field(..., description="One or more s-expressions to evaluate")


@catalog.tool(
    name="evaluate",
    description=(
        "Takes an s-expression and evaluates it in a fresh environment. "
        'For example: provide "(+ 1 2)" and this will evaluate that and return 3'
    ),
    args_model=EvaluateInput,
)
def evaluate(args: EvaluateInput) -> CapturedOutput[str]:
    """
    Evaluate every form in ``expression`` and return the last value.

    Text written with ``print``/``println``/``prn`` is captured separately from
    the returned value.
    """

    return capture_output(lambda: pr_str(evaluate_source(args.expression)))
