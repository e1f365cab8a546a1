import json

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from cooksmart_utils.ai.client import BedrockRecipeModel, RecipeModel
from cooksmart_utils.ai.config import AIServiceConfig, RecipePreferences, validate_ai_config
from cooksmart_utils.ai.generation import generate_ai_recipes_from_pantry
from cooksmart_utils.ai.prompts import build_recipe_prompt
from cooksmart_utils.errors import NetworkError
from cooksmart_utils.ingredients.models import Ingredient

PANTRY = [Ingredient(name="Chicken Breast", count=2), Ingredient(name="Jasmine Rice")]

COMPLETION = json.dumps(
    [
        {"title": "Chicken Fried Rice", "ingredients": [{"name": "chicken breast", "amount": 1, "unit": "piece"}]},
        {"title": "Chicken Congee", "confidence_score": 70},
    ]
)


class FakeModel(RecipeModel):
    def __init__(self, completion=COMPLETION, error=None):
        self.completion = completion
        self.error = error
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.completion


def bedrock_response(mocker, payload):
    return {"body": mocker.Mock(read=lambda: json.dumps(payload))}


# --- Configuration ---


def test_default_preferences():
    prefs = RecipePreferences()
    assert prefs.cooking_styles == ["healthy", "quick"]
    assert prefs.max_cooking_time == 45
    assert prefs.skill_level == "intermediate"
    assert prefs.serving_size == 4
    assert prefs.nutrition_focus == "balanced"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"skill_level": "expert"},
        {"nutrition_focus": "keto"},
    ],
)
def test_invalid_preferences(kwargs):
    with pytest.raises(ValueError):
        RecipePreferences(**kwargs)


def test_validate_default_config():
    result = validate_ai_config(AIServiceConfig(region="us-east-1"))
    assert result["is_valid"]
    assert result["warnings"] == []
    assert result["recommendations"] == []


@pytest.mark.parametrize(
    "config, is_valid, warning",
    [
        (AIServiceConfig(temperature=1.5), False, "Temperature should be between 0.0 and 1.0"),
        (AIServiceConfig(temperature=-0.1), False, "Temperature should be between 0.0 and 1.0"),
        (AIServiceConfig(default_recipe_count=0), False, "Default recipe count should be at least 1"),
        (AIServiceConfig(max_tokens=8000), True, "Very high token limit may cause slow responses"),
        (AIServiceConfig(model_id=""), True, "No Bedrock model id configured"),
    ],
)
def test_validate_ai_config(config, is_valid, warning):
    result = validate_ai_config(config)
    assert result["is_valid"] is is_valid
    assert warning in result["warnings"]


def test_missing_region_is_only_a_recommendation():
    result = validate_ai_config(AIServiceConfig(region=None))
    assert result["is_valid"]
    assert result["warnings"] == []
    assert any("AWS_REGION" in r for r in result["recommendations"])


# --- Prompt ---


def test_build_recipe_prompt_lists_pantry_and_preferences():
    prefs = RecipePreferences(
        avoid_ingredients=["peanuts"],
        preferred_cuisines=["thai"],
        nutrition_focus="high-protein",
    )
    prompt = build_recipe_prompt(PANTRY, 3, prefs)
    assert "- Chicken Breast (x2)" in prompt
    assert "- Jasmine Rice\n" in prompt
    assert "Create 3 different recipes" in prompt
    assert "Never use: peanuts." in prompt
    assert "Preferred cuisines: thai." in prompt
    assert "Nutrition focus: high-protein." in prompt
    assert "Total time at most 45 minutes." in prompt


def test_build_recipe_prompt_without_nutrition_focus():
    prompt = build_recipe_prompt(PANTRY, 1, RecipePreferences(nutrition_focus="none"))
    assert "Nutrition focus" not in prompt


# --- Bedrock client ---


def test_claude3_request_and_response(mocker):
    client = mocker.Mock()
    client.invoke_model.return_value = bedrock_response(mocker, {"content": [{"type": "text", "text": "[]"}]})
    model = BedrockRecipeModel(AIServiceConfig(max_tokens=1000, temperature=0.5), client=client)

    assert model.complete("Make soup") == "[]"
    kwargs = client.invoke_model.call_args.kwargs
    assert kwargs["modelId"] == "anthropic.claude-3-haiku-20240307-v1:0"
    body = json.loads(kwargs["body"])
    assert body["anthropic_version"] == "bedrock-2023-05-31"
    assert body["max_tokens"] == 1000
    assert body["temperature"] == 0.5
    assert body["messages"][0]["content"][0]["text"] == "Make soup"


@pytest.mark.parametrize(
    "model_id, response_body, body_key",
    [
        ("amazon.nova-lite-v1:0", {"output": {"message": {"content": [{"text": "nova"}]}}}, "inferenceConfig"),
        ("amazon.titan-text-express-v1", {"results": [{"outputText": "titan"}]}, "textGenerationConfig"),
        ("anthropic.claude-v2", {"completion": "legacy"}, "max_tokens_to_sample"),
    ],
)
def test_other_model_families(mocker, model_id, response_body, body_key):
    client = mocker.Mock()
    client.invoke_model.return_value = bedrock_response(mocker, response_body)
    model = BedrockRecipeModel(AIServiceConfig(model_id=model_id), client=client)

    completion = model.complete("prompt")
    assert completion == model.extract_completion(response_body)
    assert completion
    body = json.loads(client.invoke_model.call_args.kwargs["body"])
    assert body_key in body


def test_empty_completion_is_empty_string(mocker):
    client = mocker.Mock()
    client.invoke_model.return_value = bedrock_response(mocker, {"content": []})
    assert BedrockRecipeModel(client=client).complete("prompt") == ""


@pytest.mark.parametrize(
    "error",
    [
        ClientError({"Error": {"Code": "ThrottlingException", "Message": "Rate exceeded"}}, "InvokeModel"),
        EndpointConnectionError(endpoint_url="https://bedrock-runtime.us-east-1.amazonaws.com"),
    ],
)
def test_bedrock_errors_become_network_errors(mocker, error):
    client = mocker.Mock()
    client.invoke_model.side_effect = error
    with pytest.raises(NetworkError) as excinfo:
        BedrockRecipeModel(client=client).complete("prompt")
    assert excinfo.value.source == "bedrock"


def test_bedrock_invalid_json_body(mocker):
    client = mocker.Mock()
    client.invoke_model.return_value = {"body": mocker.Mock(read=lambda: "not json")}
    with pytest.raises(NetworkError):
        BedrockRecipeModel(client=client).complete("prompt")


# --- Generation ---


def test_generate_recipes():
    model = FakeModel()
    recipes = generate_ai_recipes_from_pantry(PANTRY, count=2, model=model)
    assert [r.title for r in recipes] == ["Chicken Fried Rice", "Chicken Congee"]
    assert [r.confidence_score for r in recipes] == [80, 70]
    assert all(r.tags == ["ai-generated"] for r in recipes)
    assert "Chicken Breast" in model.prompts[0]


def test_generate_uses_default_count():
    recipes = generate_ai_recipes_from_pantry(PANTRY, model=FakeModel())
    assert len(recipes) == 2


def test_generate_with_empty_pantry_skips_model():
    model = FakeModel()
    assert generate_ai_recipes_from_pantry([], model=model) == []
    assert model.prompts == []


@pytest.mark.parametrize(
    "error",
    [
        NetworkError("connection refused", source="bedrock"),
        RuntimeError("unexpected"),
    ],
)
def test_generate_model_failure_returns_network_diagnostic(error):
    recipes = generate_ai_recipes_from_pantry(PANTRY, count=2, model=FakeModel(error=error))
    assert len(recipes) == 1
    diagnostic = recipes[0]
    assert diagnostic.title == "Recipe Generation Unavailable"
    assert diagnostic.tags == ["ai-generated", "network-error"]
    assert diagnostic.confidence_score == 50


def test_generate_unparseable_output_returns_parsing_diagnostic():
    recipes = generate_ai_recipes_from_pantry(PANTRY, count=2, model=FakeModel("I cannot do that."))
    assert [r.tags for r in recipes] == [["ai-generated", "parsing-error"]]


def test_generate_survives_oversized_numbers():
    completion = '[{"title": "Rice Bowl", "servings": 1' + "0" * 400 + "}]"
    recipes = generate_ai_recipes_from_pantry([Ingredient(name="rice")], 1, model=FakeModel(completion))
    assert [r.title for r in recipes] == ["Rice Bowl"]
