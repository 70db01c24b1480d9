# zeroplugins

The logic behind a set of chat-bot plugins. It does not depend on any bot
framework. Each module holds the data handling, storage and text formatting
for one feature. Your own bot code receives the messages and sends the
replies.

## Modules

- `zeroplugins.score`: daily sign-in and cookie scores, stored in SQLite.
  `ScoreDB` keeps scores and sign-in records. `sign_in` awards the daily
  point, caps the score at 120 and returns a `SignInResult`. `get_level`,
  `next_level_score` and `get_hour_word` give the level, the next threshold
  and the greeting for the time of day.
- `zeroplugins.sleep`: "good morning" and "good night" tracking for each
  group. `SleepDB.sleep` and `SleepDB.get_up` record the time and return
  the rank and the elapsed duration. `time_duration`, `is_morning`,
  `is_evening`, `good_morning_text` and `good_night_text` do the rest.
- `zeroplugins.wordle`: a word-guessing game with 5, 6 or 7 letters.
  `WordleGame.guess` returns a `GuessResult`. It raises `LengthError` or
  `UnknownWordError` when a guess is rejected. `WordleGame.render` draws the
  board as PNG bytes. `Dictionary`, `score_guess` and `class_length` are
  also available.
- `zeroplugins.wtf`: a table of fun "tests" and the client for their web
  API. `list_text` lists them and `new_wtf` picks one by index.
  `Wtf.predict` runs a test. It takes an optional `fetch` callable, so you
  can supply your own HTTP layer.
- `zeroplugins.vtb`: a SQLite database of voice clips in three levels of
  category, with menu texts. `VtbDB` stores the data and provides
  `first_category_message`, `second_category_message`,
  `third_category_message`, `get_third_category` and `random_vtb`.
  `fetch_vtb_list` and `fetch_vtb` download and store the catalogue.
  `escape_record_url` and `record_filename` help with clip files.
- `zeroplugins.tarot`: tarot draws and spreads, built from JSON data with
  `Deck.from_json`. It provides `Deck.draw`, `Deck.draw_formation`,
  `Deck.describe`, `Deck.card_list_text`, `draw_text`, `formation_text`,
  `arcana_range`, `parse_draw_count` and `image_url`.
- `zeroplugins.ymgal`: galgame CG and sticker picture sets, stored in
  SQLite. `YmgalDB` offers `random` and `search`. `update_pictures` crawls
  the site for new sets. `parse_cg_page`, `parse_emoticon_page`,
  `parse_page_count`, `parse_picset_ids` and `search_url` are the scraping
  helpers.
- `zeroplugins.replies`: parsers for the plain reply services
  (`fetch_shadiao`, `parse_shadiao`, `parse_sweet_nothing`, `parse_duanzi`,
  `parse_ergofabulous`), the keyword thesaurus (`load_thesaurus`,
  `thesaurus_reply`) and the anime scene search result text
  (`format_trace_result`).

## Example

```python
from datetime import datetime
from zeroplugins.score import ScoreDB, sign_in

with ScoreDB("score.db") as db:
    result = sign_in(db, 12345, datetime.now())
    print(result.score, result.level, result.next_level_score)
```

## What it does not do

- It has no command and no bot runner. It does not connect to a chat
  service, listen for messages or send them.
- It has no storage or quota handling for third-party API keys.
- It does not rank the hot words of a chat history.
- It draws no charts or sign-in cards. Only the wordle board is rendered.

## Install

```
pip install .
pip install ".[test]"
pytest
```