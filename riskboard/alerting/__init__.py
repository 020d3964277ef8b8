"""
RiskBoard Alert Rule Engine.

Components:
- schemas: Rules, conditions, actions, dispatch requests and outcomes
- engine: Condition evaluation, cooldown gate, firing and dispatch
- channels: Webhook, chat, email, SMS and internal alert delivery
- repository: Rule persistence boundary (in-memory, JSON file)
- defaults: Built-in rule set
"""
