"""Narration line banks for the offline template story generator.

Each niche maps its four structure stages, in order, to a bank of short
lines. ``{subject}`` in an opening line is filled with the prompt subject.
Lines stay at 8 words or fewer so a stage never overshoots its word floor
by more than 7 words.
"""

MAX_LINE_WORDS = 8

OPENING_LINES = {
    "horror": "Nobody goes near the {subject} anymore.",
    "reddit_stories": "It all started with the {subject}.",
}

STAGE_VISUALS = (
    "establishing wide shot, quiet and still",
    "creeping closer, tense framing, deep shadows",
    "sudden reveal, dramatic low angle",
    "lingering aftermath, empty frame",
)

HORROR_BANKS = (
    (
        "I should never have gone back there.",
        "The first sign was the silence.",
        "Every light on the street went out.",
        "My phone buzzed with a message from myself.",
        "It started the night the clocks stopped.",
        "I still hear the knocking at 3 AM.",
        "Nobody in town will say its name.",
        "The door was open when I arrived.",
        "Something had been waiting there for years.",
        "I was told to never look back.",
    ),
    (
        "The air grew colder with every step.",
        "Footprints appeared in the dust ahead of me.",
        "A radio crackled somewhere in the dark.",
        "I counted the doors again. One more.",
        "The walls felt damp and strangely warm.",
        "My flashlight flickered, then steadied again.",
        "Someone had written my name on the mirror.",
        "The stairs creaked behind me, slowly.",
        "An old song drifted up from the basement.",
        "I told myself it was only the wind.",
        "The shadows moved a moment after I did.",
        "Every window showed the same pale face.",
    ),
    (
        "Then I realized the footsteps matched mine.",
        "The face in the window was my own.",
        "The voice calling me was my mother's.",
        "I had never left that house at all.",
        "The door I came through was gone.",
        "The photos on the wall showed me, older.",
        "It had been copying me the whole time.",
        "My reflection blinked, but I did not.",
        "The knocking was coming from inside the walls.",
        "The message on my phone was sent tomorrow.",
    ),
    (
        "Now the lights stay on all night.",
        "I still leave the door unlocked for it.",
        "Some nights I hear it learning my voice.",
        "If you hear knocking, do not answer.",
        "It knows your name now too.",
        "I never went back. It came to me.",
        "The silence always returns before it does.",
        "Check your mirror before you go to sleep.",
        "It is still waiting for someone to return.",
        "And tonight, the knocking started again.",
    ),
)

REDDIT_BANKS = (
    (
        "So this happened to me last month.",
        "I have been with my partner for years.",
        "My roommate and I always split everything evenly.",
        "We planned the trip for almost a year.",
        "My sister asked me for a huge favor.",
        "I work at a small family restaurant.",
        "Our neighbors seemed friendly when we moved in.",
        "My best friend was getting married in June.",
        "I never expected a group chat to matter.",
        "At work, everyone knew me as quiet.",
    ),
    (
        "Then the messages started getting weird.",
        "She said I owed her for everything.",
        "Nobody told me about the change of plans.",
        "The bill arrived, and it made no sense.",
        "My manager blamed me in front of everyone.",
        "I found out through a screenshot, of course.",
        "They expected me to just stay quiet.",
        "Every conversation turned into an argument.",
        "I asked for an explanation and got silence.",
        "Things escalated faster than I expected.",
    ),
    (
        "So I finally said what I was thinking.",
        "I printed every receipt and brought them along.",
        "The whole table went completely silent.",
        "Then her own brother took my side.",
        "I walked out before anyone could answer.",
        "Someone had recorded the entire conversation.",
        "The truth came out in the worst way.",
        "I read the messages out loud to everyone.",
        "That is when the real reason came out.",
        "Nobody expected me to push back that hard.",
    ),
    (
        "We have not spoken since that night.",
        "Honestly, I feel lighter than in years.",
        "Half my family thinks I went too far.",
        "They apologized a week later, sort of.",
        "I moved out at the month's end.",
        "Some people only respect you when you leave.",
        "I would do it all again.",
        "The group chat is very quiet now.",
        "Lesson learned: keep the receipts.",
        "So, was I wrong to speak up?",
    ),
)

STAGE_BANKS = {
    "horror": HORROR_BANKS,
    "reddit_stories": REDDIT_BANKS,
}
