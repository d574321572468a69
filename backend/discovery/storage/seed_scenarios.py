"""
Built-in scenarios, written to the scenario store on first start.
"""

CONDUCT_RULES = """
Conduct:
- If the consultant is abusive, insulting or clearly acting in bad faith, end the meeting.
- To end the meeting, reply with ONLY your closing line wrapped like this:
  [END_MEETING]I don't think this meeting is productive. Let's stop here.[/END_MEETING]
- Never use these markers for any other reason."""

KINDRELL_PROMPT = """You are Gareth Lawson, Associate Director at Kindrell. You are helping a Tier 2 UK Bank.
Problem: Customer onboarding is slow/manual.
Hidden Technical Root Cause: Fragmented legacy systems are not talking to each other.
Goal: Student must realize they need an API wrapper/middleware solution.
Tone: Professional but frustrated.

Important guidelines:
- Stay in character as Gareth throughout the conversation
- Don't reveal the solution directly - let the student discover it through good questions
- Give hints when they ask the right questions
- Be realistic about the constraints and challenges
- Express frustration with the current situation naturally""" + CONDUCT_RULES

PANTHER_PROMPT = """You are Marco Santos, Lead Engineer at Panther Motors (luxury vehicle manufacturer).
Challenge: Design covers for exterior connection points (roof racks, ladders) for our flagship SUV models.
Constraints: Must be robust, simple to use, but blend with luxury aesthetics.
Goal: Student must ask about specific vehicle areas (roof rails, rear quarter) and benchmark competitors.
Tone: Technical and detail-oriented.

Important guidelines:
- Stay in character as Marco throughout the conversation
- Be specific about engineering requirements when asked
- Mention that design must pass durability and weather testing
- Reference the importance of maintaining the vehicle's premium look
- Encourage the student to think about the user experience""" + CONDUCT_RULES

IDM_PROMPT = """You are Emma Richardson, Asst. Chief Executive at Innovation District Manchester.
Context: IDM's 2040 Vision for the region.
Challenge: Need a project to engage local communities (social impact).
Goal: Student must propose a specific event or project connecting locals to innovation jobs/health.
Tone: Inspiring, community-focused.

Important guidelines:
- Stay in character as Emma throughout the conversation
- Be passionate about the community and social impact
- Mention specific local areas and demographics when relevant
- Talk about partnerships with universities and healthcare institutions
- Encourage creative thinking about community engagement""" + CONDUCT_RULES


DEFAULT_SCENARIOS = [
    {
        "id": "kindrell",
        "name": "Gareth Lawson",
        "role": "Associate Director",
        "company": "Kindrell (Tier 2 UK Bank)",
        "avatar_seed": "gareth",
        "difficulty": "medium",
        "opening_line": "Hi. I'm Gareth. Our bank's onboarding is a mess. It's too slow.",
        "system_prompt": KINDRELL_PROMPT,
        "max_turns": 15,
        "required_details": [
            {
                "id": "current-process",
                "label": "Current Process",
                "description": "Understand existing onboarding workflow",
                "keywords": ["process", "workflow", "currently", "today", "now", "steps", "how do you"],
                "priority": "required",
            },
            {
                "id": "pain-points",
                "label": "Pain Points",
                "description": "Identify specific frustrations and bottlenecks",
                "keywords": ["slow", "problem", "issue", "frustrating", "pain", "bottleneck", "delay", "waiting"],
                "priority": "required",
            },
            {
                "id": "legacy-systems",
                "label": "Technical Systems",
                "description": "Learn about existing technology and integrations",
                "keywords": ["system", "software", "legacy", "integration", "API", "database", "technology", "platform"],
                "priority": "required",
            },
            {
                "id": "stakeholders",
                "label": "Stakeholders",
                "description": "Identify who is involved and affected",
                "keywords": ["team", "department", "who", "stakeholder", "involved", "responsible", "compliance"],
                "priority": "required",
            },
            {
                "id": "budget-timeline",
                "label": "Budget/Timeline",
                "description": "Understand project constraints",
                "keywords": ["budget", "timeline", "deadline", "cost", "when", "how long", "resources"],
                "priority": "optional",
            },
        ],
        "hints": [
            {
                "id": "hint-process",
                "trigger": "manual",
                "text": "Try asking about the step-by-step process of onboarding a new customer today.",
                "category": "discovery",
            },
            {
                "id": "hint-systems",
                "trigger": "keyword",
                "keywords": ["slow", "manual", "takes long"],
                "text": "The client mentioned slowness - dig deeper into which systems are involved.",
                "category": "technical",
            },
            {
                "id": "hint-integration",
                "trigger": "keyword",
                "keywords": ["system", "software", "legacy"],
                "text": "Ask how different systems communicate with each other. Are they integrated?",
                "category": "technical",
            },
            {
                "id": "hint-workaround",
                "trigger": "time",
                "delay_seconds": 30,
                "text": "Consider asking what workarounds the team currently uses to deal with the slowness.",
                "category": "discovery",
            },
            {
                "id": "hint-impact",
                "trigger": "manual",
                "text": "What's the business impact? How many customers are affected?",
                "category": "relationship",
            },
        ],
    },
    {
        "id": "panther",
        "name": "Marco Santos",
        "role": "Lead Engineer",
        "company": "Panther Motors",
        "avatar_seed": "marco",
        "difficulty": "hard",
        "opening_line": "Hello. We need to hide the exterior connection points on our vehicles. Thoughts?",
        "system_prompt": PANTHER_PROMPT,
        "max_turns": 15,
        "required_details": [
            {
                "id": "connection-points",
                "label": "Connection Points",
                "description": "Identify all exterior connection points that need covering",
                "keywords": ["roof", "rack", "rails", "ladder", "connection", "points", "exterior", "where"],
                "priority": "required",
            },
            {
                "id": "aesthetics",
                "label": "Design Requirements",
                "description": "Understand the aesthetic and brand requirements",
                "keywords": ["design", "look", "aesthetic", "luxury", "premium", "brand", "style", "appearance"],
                "priority": "required",
            },
            {
                "id": "durability",
                "label": "Durability Specs",
                "description": "Learn about durability and testing requirements",
                "keywords": ["durability", "test", "weather", "robust", "strong", "material", "quality", "specification"],
                "priority": "required",
            },
            {
                "id": "user-experience",
                "label": "User Experience",
                "description": "Understand how customers will interact with the covers",
                "keywords": ["user", "customer", "easy", "simple", "use", "access", "install", "remove"],
                "priority": "required",
            },
            {
                "id": "competitors",
                "label": "Competitor Analysis",
                "description": "Research what competitors are doing",
                "keywords": ["competitor", "other brands", "benchmark", "market", "similar", "industry"],
                "priority": "optional",
            },
        ],
        "hints": [
            {
                "id": "hint-location",
                "trigger": "manual",
                "text": "Ask specifically which areas of the vehicle have these connection points.",
                "category": "discovery",
            },
            {
                "id": "hint-luxury",
                "trigger": "keyword",
                "keywords": ["cover", "hide", "design"],
                "text": "This is a luxury brand - ask about their design language and brand guidelines.",
                "category": "technical",
            },
            {
                "id": "hint-testing",
                "trigger": "keyword",
                "keywords": ["material", "build", "make"],
                "text": "What testing standards must the covers pass? Weather, durability, safety?",
                "category": "technical",
            },
            {
                "id": "hint-ux",
                "trigger": "time",
                "delay_seconds": 30,
                "text": "Think about the customer - how will they use these covers day-to-day?",
                "category": "discovery",
            },
            {
                "id": "hint-benchmark",
                "trigger": "manual",
                "text": "Have they looked at how competitors like Land Rover or BMW handle this?",
                "category": "relationship",
            },
        ],
    },
    {
        "id": "idm",
        "name": "Emma Richardson",
        "role": "Asst. Chief Executive",
        "company": "Innovation District Manchester",
        "avatar_seed": "emma",
        "difficulty": "easy",
        "opening_line": "Hi. Innovation District Manchester is growing, but our local neighbors aren't feeling the benefits.",
        "system_prompt": IDM_PROMPT,
        "max_turns": 15,
        "required_details": [
            {
                "id": "community-needs",
                "label": "Community Needs",
                "description": "Understand what the local community actually needs",
                "keywords": ["community", "local", "neighbors", "residents", "people", "needs", "want"],
                "priority": "required",
            },
            {
                "id": "current-gap",
                "label": "Current Gap",
                "description": "Identify why locals aren't feeling the benefits",
                "keywords": ["gap", "disconnect", "why", "barrier", "challenge", "problem", "issue"],
                "priority": "required",
            },
            {
                "id": "partnerships",
                "label": "Existing Partnerships",
                "description": "Learn about university and healthcare partnerships",
                "keywords": ["university", "partner", "healthcare", "hospital", "institution", "collaborate", "work with"],
                "priority": "required",
            },
            {
                "id": "success-metrics",
                "label": "Success Metrics",
                "description": "Define what success looks like for this project",
                "keywords": ["success", "measure", "impact", "outcome", "goal", "achieve", "result"],
                "priority": "required",
            },
            {
                "id": "resources",
                "label": "Available Resources",
                "description": "Understand what resources are available",
                "keywords": ["resource", "budget", "funding", "support", "available", "space", "venue"],
                "priority": "optional",
            },
        ],
        "hints": [
            {
                "id": "hint-demographics",
                "trigger": "manual",
                "text": "Ask about the specific demographics of the local community - who are they?",
                "category": "discovery",
            },
            {
                "id": "hint-barriers",
                "trigger": "keyword",
                "keywords": ["benefit", "feel", "local"],
                "text": "What barriers prevent locals from engaging with the innovation district?",
                "category": "discovery",
            },
            {
                "id": "hint-existing",
                "trigger": "keyword",
                "keywords": ["project", "program", "initiative"],
                "text": "What community engagement has been tried before? What worked or didn't?",
                "category": "technical",
            },
            {
                "id": "hint-partners",
                "trigger": "time",
                "delay_seconds": 30,
                "text": "IDM likely has partnerships - ask about universities and healthcare institutions.",
                "category": "relationship",
            },
            {
                "id": "hint-vision",
                "trigger": "manual",
                "text": "What's the 2040 Vision? How does community engagement fit into that?",
                "category": "relationship",
            },
        ],
    },
]
