"""
CareNexa Health API — domain logic behind the CareNexa web dashboard.

  Health vector    8-axis wellness snapshot scored by L2 distance to the ideal
  Safe routing     hospital ranking that avoids community-reported danger zones
  Agent prompts    instruction templates for the AI doctor agents
  Audit trail      SHA-256 consultation receipts
  Community pins   user-submitted hazard annotations
"""
