from __future__ import annotations

import copy

import pytest


FULL_SCHEMA = {
    "version": 1,
    "sections": [
        {
            "id": "basics",
            "title": "About the situation",
            "step": 1,
            "description": "Describe what happened in your own words.",
            "fields": [
                {"id": "situation", "type": "text", "label": "Situation", "required": True},
                {"id": "thoughts", "type": "textarea", "label": "Thoughts", "placeholder": "What went through your mind?"},
                {"id": "hours", "type": "number", "label": "Hours slept", "min": 0, "max": 24},
                {"id": "when", "type": "date", "label": "Date"},
                {"id": "time", "type": "time", "label": "Time"},
                {
                    "id": "mood",
                    "type": "select",
                    "label": "Main emotion",
                    "options": [{"id": "anx", "label": "Anxious"}, {"id": "low", "label": "Low"}],
                },
                {
                    "id": "signs",
                    "type": "checklist",
                    "label": "Body signs",
                    "options": [{"id": "heart", "label": "Racing heart"}, {"id": "sweat", "label": "Sweating"}],
                },
                {
                    "id": "distress",
                    "type": "likert",
                    "label": "Distress",
                    "min": 0,
                    "max": 10,
                    "anchors": {"0": "None", "10": "Severe"},
                },
                {"id": "change", "type": "computed", "label": "Belief change", "computation": {"op": "difference"}},
            ],
        },
        {
            "id": "structured",
            "title": "Structured tools",
            "fields": [
                {
                    "id": "log",
                    "type": "table",
                    "label": "Activity log",
                    "min_rows": 2,
                    "columns": [
                        {"id": "activity", "header": "Activity"},
                        {"id": "mastery", "header": "Mastery", "type": "number"},
                    ],
                },
                {
                    "id": "ladder",
                    "type": "hierarchy",
                    "label": "Exposure ladder",
                    "columns": [
                        {"id": "situation", "header": "Situation"},
                        {"id": "suds", "header": "SUDS", "type": "number"},
                    ],
                },
                {
                    "id": "plan",
                    "type": "safety_plan",
                    "label": "Safety plan",
                    "steps": [
                        {"id": "warning", "step": 1, "label": "Warning signs", "fields": [{"id": "signs", "type": "textarea"}]},
                        {
                            "id": "emergency",
                            "step": 6,
                            "label": "Emergency contacts",
                            "highlight": "red",
                            "hint": "Call 999 if you are in immediate danger",
                            "fields": [{"id": "contacts", "type": "textarea"}],
                        },
                    ],
                },
                {
                    "id": "tree",
                    "type": "decision_tree",
                    "label": "Worry tree",
                    "question": "Can I do something about this?",
                    "branches": {
                        "yes": {"label": "Make a plan", "fields": [{"id": "action", "type": "text", "label": "Action"}], "outcome": "Act on it"},
                        "no": {"label": "Let it go", "fields": [{"id": "refocus", "type": "text", "label": "Refocus"}], "outcome": "Refocus attention"},
                    },
                },
                {
                    "id": "cycle",
                    "type": "formulation",
                    "label": "Vicious cycle",
                    "nodes": [
                        {"id": "trigger", "label": "Trigger", "domain_colour": "#2563eb", "fields": [{"id": "text", "type": "textarea"}]},
                        {"id": "belief", "label": "Belief", "fields": [{"id": "text", "type": "text"}]},
                    ],
                },
                {
                    "id": "record",
                    "type": "record",
                    "label": "Thought record",
                    "groups": [
                        {"id": "event", "header": "Event", "fields": [{"id": "what", "type": "text", "label": "What happened"}]},
                        {"id": "rating", "header": "Rating", "fields": [{"id": "belief", "type": "likert", "label": "Belief", "min": 0, "max": 100, "step": 10}]},
                    ],
                },
            ],
        },
    ],
}


@pytest.fixture
def full_schema() -> dict:
    return copy.deepcopy(FULL_SCHEMA)
