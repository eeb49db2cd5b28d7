"""Fixed taxonomy used to categorise integrations."""

from __future__ import annotations

DEFAULT_INTEGRATION_CATEGORY = "Business Process Automation"

INTEGRATION_CATEGORIES: dict[str, str] = {
    "telegram": "Communication & Messaging",
    "slack": "Communication & Messaging",
    "discord": "Communication & Messaging",
    "gmail": "Communication & Messaging",
    "googlesheets": "Data Processing & Analysis",
    "airtable": "Data Processing & Analysis",
    "notion": "Project Management",
    "trello": "Project Management",
    "asana": "Project Management",
    "github": "Technical Infrastructure & DevOps",
    "gitlab": "Technical Infrastructure & DevOps",
    "webhook": "Technical Infrastructure & DevOps",
    "shopify": "E-commerce & Retail",
    "stripe": "Financial & Accounting",
    "paypal": "Financial & Accounting",
    "hubspot": "CRM & Sales",
    "salesforce": "CRM & Sales",
    "pipedrive": "CRM & Sales",
    "mailchimp": "Marketing & Advertising Automation",
    "sendgrid": "Marketing & Advertising Automation",
    "twitter": "Social Media Management",
    "linkedin": "Social Media Management",
    "facebook": "Social Media Management",
    "youtube": "Creative Content & Video Automation",
    "wordpress": "Creative Content & Video Automation",
    "dropbox": "Cloud Storage & File Management",
    "googledrive": "Cloud Storage & File Management",
    "awss3": "Cloud Storage & File Management",
    "http": "Web Scraping & Data Extraction",
    "openai": "AI Agent Development",
    "anthropic": "AI Agent Development",
}


def integration_category(name: str) -> str:
    """Return the category of an integration identifier."""

    return INTEGRATION_CATEGORIES.get(name.lower(), DEFAULT_INTEGRATION_CATEGORY)
