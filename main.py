import argparse
import asyncio
import logging
import sys

import config
from errors import InvalidInputError, MathTutorError
from ingestion.image_ingestion import load_image
from pipeline.solve_pipeline import PipelineSnapshot, StageTimings
from pipeline.stage import STAGE_LABELS
from runtime.app import AppMode, MathTutorApp
from runtime.renderer import LoggingRenderer, SafeRenderer
from schemas.pydantic.grading_result import GradingResult
from schemas.pydantic.question import Difficulty
from schemas.pydantic.solution import Solution


# -------------------------
# Helpers
# -------------------------
def print_stage(snapshot: PipelineSnapshot) -> None:
    label = STAGE_LABELS.get(snapshot.stage, snapshot.stage.value)
    print(f"[{snapshot.stage.value.upper()}] {label}")


async def render_solution(renderer: SafeRenderer, solution: Solution) -> None:
    print(f"\nProblem ({solution.problem_category}, confidence={solution.confidence:.2f}):")
    await renderer.render(solution.display_expression, True)

    for idx, step in enumerate(solution.steps, start=1):
        rule = f" [{step.rule}]" if step.rule else ""
        print(f"\nStep {idx}{rule}: {step.explanation}")
        await renderer.render(step.expression, True)

    print("\nFinal answer:")
    await renderer.render(solution.final_answer, True)


async def render_grading(renderer: SafeRenderer, result: GradingResult) -> None:
    verdict = "Correct!" if result.is_correct else "Not quite."
    print(f"\n{verdict} Score: {result.score}/10")
    if result.feedback:
        print(result.feedback)
    if result.correct_solution:
        print("Correct solution:")
        await renderer.render(result.correct_solution, True)


def build_app(args: argparse.Namespace) -> MathTutorApp:
    app = MathTutorApp(
        renderer=LoggingRenderer(),
        timings=StageTimings.zero() if args.fast else StageTimings(),
        timeout_sec=args.timeout,
        difficulty=getattr(args, "difficulty", Difficulty.MEDIUM.value),
    )
    if app.api_key_warning:
        print(f"WARNING: {app.api_key_warning}", file=sys.stderr)
    return app


# -------------------------
# Commands
# -------------------------
async def run_solve(args: argparse.Namespace) -> int:
    app = build_app(args)
    app.switch_mode(AppMode.SOLVER)

    try:
        image = load_image(args.image)
    except InvalidInputError as e:
        print(f"ERROR: {e.user_message}", file=sys.stderr)
        return 2

    app.pipeline.add_listener(print_stage)
    solution = await app.pipeline.submit(image)

    if solution is None:
        print(f"ERROR: {app.pipeline.error}", file=sys.stderr)
        return 1

    await render_solution(app.renderer, solution)
    return 0


async def _prompt(text: str) -> str:
    return (await asyncio.to_thread(input, text)).strip()


async def run_practice(args: argparse.Namespace) -> int:
    app = build_app(args)
    app.switch_mode(AppMode.PRACTICE)
    session = app.practice

    while True:
        try:
            question = await session.new_round()
        except MathTutorError:
            print(f"ERROR: {session.snapshot().error}", file=sys.stderr)
            return 1

        print(f"\n[{question.difficulty.value}] {question.topic}")
        await app.renderer.render(question.expression, True)

        while session.grading_result is None:
            answer = await _prompt("Your answer (n = new question, q = quit): ")
            if answer.lower() == "q":
                return 0
            if answer.lower() == "n":
                break

            try:
                result = await session.submit_answer(answer)
            except InvalidInputError as e:
                print(e.user_message)
                continue
            except MathTutorError:
                print(session.snapshot().error)
                continue

            await render_grading(app.renderer, result)

        if session.grading_result is not None:
            choice = (await _prompt("Next question? [Y/n/easy/medium/hard] ")).lower()
            if choice in ("n", "no", "q"):
                return 0
            if choice not in ("", "y", "yes"):
                try:
                    await session.change_difficulty(choice)
                except InvalidInputError as e:
                    print(e.user_message)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Snap a math problem and get a step-by-step solution, or practice."
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=config.DEFAULT_TIMEOUT_SEC,
        help="Reasoning Service timeout in seconds",
    )
    parser.add_argument(
        "--fast",
        action="store_true",
        help="Skip the simulated stage latencies",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    solve = subparsers.add_parser("solve", help="Solve the math problem in an image")
    solve.add_argument("image", help="Path to an image file")

    practice = subparsers.add_parser("practice", help="Interactive practice mode")
    practice.add_argument(
        "--difficulty",
        choices=[d.value for d in Difficulty],
        default=Difficulty.MEDIUM.value,
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    config.load_environment()
    logging.basicConfig(
        level=config.get_log_level(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    args = parse_args(argv)
    runner = run_solve if args.command == "solve" else run_practice

    try:
        return asyncio.run(runner(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
