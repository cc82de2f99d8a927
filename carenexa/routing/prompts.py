"""
Safe-route LLM prompts.

Used by engine.plan_safe_route(): one call to discover nearby hospitals when the
client did not supply candidates, and one call for the short safety note.
"""

HOSPITAL_DISCOVERY_PROMPT = """Find the 3 nearest hospitals to coordinates ({lat}, {lng}).
Emergency type: {emergency_type}

For cardiac emergencies, prioritize hospitals with cardiac catheterization labs.
For trauma, prioritize Level 1 trauma centers.
For stroke, prioritize certified stroke centers.
For general, find the nearest emergency department.

Return ONLY JSON (no markdown):
{{
  "hospitals": [
    {{
      "name": "Hospital Name",
      "lat": 0.0,
      "lng": 0.0,
      "distance_km": 1.2,
      "estimated_minutes": 5,
      "specialty": "General/Cardiac/Trauma/Stroke",
      "hasCapability": true
    }}
  ]
}}"""

SAFETY_NOTE_PROMPT = """A patient needs emergency transport from ({lat}, {lng}) to {hospital}.
Emergency: {emergency_type}. Estimated time: {minutes} minutes. Danger zones on route: {danger_count}.

Write ONE concise safety note (max 20 words). JSON: {{"safetyNote": "..."}}"""
