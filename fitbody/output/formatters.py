"""Formatters for CLI output (Markdown and JSON)."""

import json
from typing import Any, Dict, Iterable, List, Optional

from fitbody.data_layer.models import (
    Article,
    Guide,
    Meal,
    MealPlan,
    OperationResult,
    Pagination,
    Workout,
)


def format_number(value: float) -> str:
    """Format a number without a trailing ``.0`` (e.g. 250.0 -> "250")."""
    if value == int(value):
        return str(int(value))
    return f"{value:.1f}".rstrip('0').rstrip('.')


def format_pagination(pagination: Pagination) -> str:
    more = " (more available)" if pagination.has_more else ""
    return f"_Page {pagination.page}, {pagination.total} loaded{more}_"


def format_articles_markdown(
    articles: Iterable[Article],
    favorites: Iterable[str] = (),
    pagination: Optional[Pagination] = None,
) -> str:
    """Format articles as a Markdown list.

    Args:
        articles: Articles to list
        favorites: Ids to mark with a star
        pagination: Optional paging footer

    Returns:
        Markdown string
    """
    favorite_ids = set(favorites)
    lines = ["# Articles\n"]
    for article in articles:
        star = " ★" if article.id in favorite_ids else ""
        lines.append(f"- **{article.title}**{star} `{article.id}`")
        if article.excerpt:
            lines.append(f"  {article.excerpt}")
        lines.append(f"  _{article.category} · {article.read_time} · {article.author}_")
    if len(lines) == 1:
        lines.append("No articles found.")
    if pagination is not None:
        lines.append("")
        lines.append(format_pagination(pagination))
    return "\n".join(lines)


def format_article_markdown(article: Article) -> str:
    lines = [
        f"# {article.title}\n",
        f"**By:** {article.author}",
        f"**Published:** {article.published_date}",
        f"**Read time:** {article.read_time}",
        "",
    ]
    if article.excerpt:
        lines.append(f"> {article.excerpt}")
        lines.append("")
    if article.content:
        lines.append(article.content)
    return "\n".join(lines)


def format_workouts_markdown(
    workouts: Iterable[Workout],
    favorites: Iterable[str] = (),
    pagination: Optional[Pagination] = None,
) -> str:
    """Format workouts as a Markdown table."""
    favorite_ids = set(favorites)
    lines = [
        "# Workouts\n",
        "| Name | Level | Minutes | Calories | Exercises | Id |",
        "|------|-------|---------|----------|-----------|----|",
    ]
    for workout in workouts:
        star = " ★" if workout.id in favorite_ids else ""
        lines.append(
            f"| {workout.name}{star} | {workout.level} | {format_number(workout.minutes)} "
            f"| {format_number(workout.cal)} | {workout.excercise} | `{workout.id}` |"
        )
    if pagination is not None:
        lines.append("")
        lines.append(format_pagination(pagination))
    return "\n".join(lines)


def format_guides_markdown(workout_name: str, guides: List[Guide]) -> str:
    """Format a workout's guides, grouped under a heading per round."""
    lines = [f"# {workout_name}\n"]
    heading = None
    for guide in guides:
        round_heading = f"## Round {guide.round}" if guide.round is not None else "## Extra round"
        if round_heading != heading:
            heading = round_heading
            lines.append(heading)
        detail = f"{guide.repetitions} reps" if guide.repetitions else guide.duration
        lines.append(f"- **{guide.name}** ({detail})")
        if guide.description:
            lines.append(f"  {guide.description}")
    if not guides:
        lines.append("No exercises found.")
    return "\n".join(lines)


def format_meals_markdown(meals: Iterable[Meal], title: str = "Meals") -> str:
    meal_names = {
        "breakfast": "Breakfast",
        "lunch": "Lunch",
        "dinner": "Dinner",
        "snack": "Snack",
    }
    lines = [
        f"# {title}\n",
        "| Name | Type | Calories | Minutes | Dietary | Id |",
        "|------|------|----------|---------|---------|----|",
    ]
    for meal in meals:
        meal_type = meal_names.get(meal.type, meal.type.capitalize())
        lines.append(
            f"| {meal.name} | {meal_type} | {format_number(meal.cal)} "
            f"| {format_number(meal.minutes)} | {meal.dietary or '-'} | `{meal.id}` |"
        )
    return "\n".join(lines)


def format_meal_plans_markdown(plans: Iterable[MealPlan]) -> str:
    plans = list(plans)
    meals = [plan.meal for plan in plans if plan.meal is not None]
    text = format_meals_markdown(meals, title=f"Meal Plan ({len(plans)} meals)")
    unexpanded = [plan for plan in plans if plan.meal is None]
    if unexpanded:
        text += "\n\n" + "\n".join(f"- meal `{p.meal_id}` (plan `{p.id}`)" for p in unexpanded)
    return text


def format_setup_result_markdown(result: OperationResult) -> str:
    """Format the outcome of meal-plan setup.

    Args:
        result: OperationResult from NutritionStore.setup_meal_plan

    Returns:
        Formatted Markdown string
    """
    lines = ["# Meal Plan Setup\n"]
    if not result.success:
        lines.append(f"⚠️ **{result.error}**\n")
        counts = result.details.get("meal_type_results", {})
        if counts:
            lines.append("## Matches per meal type")
            for meal_type, count in counts.items():
                lines.append(f"- {meal_type.capitalize()}: {count}")
        return "\n".join(lines)

    data = result.data or {}
    lines.append("✅ **Meal plan created**\n")
    lines.append(f"**Meals found:** {data.get('mealsFound', 0)}")
    lines.append(f"**Meal plans created:** {data.get('mealPlansCreated', 0)}")
    if result.message:
        lines.append(f"**Status:** {result.message}")
    lines.append("")
    lines.append("## Breakdown")
    for meal_type, count in data.get("mealTypeBreakdown", {}).items():
        lines.append(f"- {meal_type.capitalize()}: {count}")
    return "\n".join(lines)


def format_result_json(result: OperationResult) -> Dict[str, Any]:
    """Format an OperationResult as a JSON-ready dict."""
    data = result.data
    if hasattr(data, "to_dict"):
        data = data.to_dict()
    output: Dict[str, Any] = {"success": result.success}
    if result.success:
        output["data"] = data
    else:
        output["error"] = result.error
    if result.action:
        output["action"] = result.action
    if result.message:
        output["message"] = result.message
    if result.details:
        output["details"] = result.details
    return output


def format_entities_json(
    entities: Iterable[Any], pagination: Optional[Pagination] = None
) -> Dict[str, Any]:
    output: Dict[str, Any] = {"items": [entity.to_dict() for entity in entities]}
    if pagination is not None:
        output["pagination"] = pagination.to_dict()
    return output


def to_json_string(payload: Any, indent: int = 2) -> str:
    return json.dumps(payload, indent=indent, default=str)
