"""Output formatting for CLI commands."""

from fitbody.output.formatters import (
    format_articles_markdown,
    format_article_markdown,
    format_workouts_markdown,
    format_guides_markdown,
    format_meals_markdown,
    format_meal_plans_markdown,
    format_setup_result_markdown,
    format_result_json,
    format_entities_json,
    to_json_string,
)

__all__ = [
    "format_articles_markdown",
    "format_article_markdown",
    "format_workouts_markdown",
    "format_guides_markdown",
    "format_meals_markdown",
    "format_meal_plans_markdown",
    "format_setup_result_markdown",
    "format_result_json",
    "format_entities_json",
    "to_json_string",
]
