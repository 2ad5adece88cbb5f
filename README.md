# groupbot

Building blocks for a group chat bot. Each feature is a plain Python module
that you call from your own message handlers.

## Modules

- **`groupbot.timer`**: group reminders.
  - `model.Timer` packs month, day, weekday, hour, minute and an enable flag
    into one integer. A field set to `-1` means "every". `timer_info()` gives
    the canonical key and `timer_id()` gives a 32-bit id derived from it.
  - `parse.get_filled_timer` builds a timer from Chinese date phrases such as
    month `十二`, `每周` or `周三`, and hours and minutes like `八` or `三十`.
    On invalid input the timer stays disabled and `alert` holds the reason.
    `get_filled_cron_timer` builds a cron-based timer.
  - `schedule` has three functions. `next_wake_time(timer, now)` gives the
    next time to check a timer. `should_fire(timer, now)` tells whether the
    timer fires at that minute. `build_message(timer)` returns the message
    segments: @all, the alert text and an optional image.
  - `cron.parse_cron` reads five-field expressions and `@daily`-style
    descriptors. The result is a `CronSchedule` with `matches()` and
    `next_after()`.
  - `clock.Clock` keeps timers in SQLite and in memory. It runs each enabled
    timer on a daemon thread and calls your `sender(group_id, segments)` when
    the timer fires. Its other methods are `cancel_timer`, `list_timers`,
    `get_timer` and `close`.
- **`groupbot.manager`**: group administration helpers.
  - `parse_ban_minutes` works out ban lengths.
  - `render_welcome` fills welcome and farewell templates. The placeholders
    are `{at}`, `{nickname}`, `{avatar}`, `{uid}`, `{gid}` and `{groupname}`.
  - `unescape_brackets` and `pick_lucky_member` are small helpers.
  - `toggle_flag` switches per-group options on or off.
  - `make_arithmetic_challenge` creates the entry quiz.
  - `parse_join_answer` and `check_new_user` handle gist-based join approval.
  - `ManagerStore` is the SQLite store for templates and verified members.
- **`groupbot.midi`**: MIDI conversion and ear training.
  - `build_midi` and `write_midi` turn note text into MIDI.
  - `midi_to_text` turns a track back into note text.
  - `EarTrainingSession` is a five-question "name that note" quiz, solo or
    team.
  - `render_wav` calls the `timidity` program, which must be on `PATH`.
- **Other features**:
  - `hyaku`: loads the hundred-poem CSV and builds image URLs.
  - `nsfw`: gives verdicts on classifier scores.
  - `jandan`: stores picture URLs keyed by CRC-64 and parses board pages.
  - `nativewife`: per-group picture galleries with one stable pick per day.
  - `omikuji`: the daily fortune slip number, its images and a store of slip
    texts.
  - `nativesetu`: a local picture library indexed by difference hash.
  - `hs`: Hearthstone search and deck URLs, and parsing of search results.
  - `holiday`: holiday countdowns and the daily reminder text.

## Examples

Parse a weekly reminder:

```python
from groupbot.timer.parse import get_filled_timer

timer = get_filled_timer(["", "12", "每周", "8", "30", "", "开会啦"], 0, 123456, False)
print(timer.en, timer.month, timer.week, timer.hour, timer.minute)  # True 12 -1 8 30
print(timer.timer_info())  # [123456]12月0日-1周8:30
```

Run timers and list them per group:

```python
from groupbot.timer.clock import Clock

def send(group_id, segments):
    print(group_id, segments)

with Clock("reminders.db", send) as clock:
    clock.register_timer(timer, save=True)
    print(clock.list_timers(123456))
```

Use a cron schedule:

```python
from datetime import datetime
from groupbot.timer.cron import parse_cron

print(parse_cron("30 8 * * 1-5").next_after(datetime(2024, 1, 6, 12, 0)))
```

Turn note text into MIDI and back:

```python
from groupbot.midi import write_midi, midi_to_text

write_midi("song.mid", "CCGGAAGR FFEEDDCR", 40)
with open("song.mid", "rb") as fh:
    print(midi_to_text(fh.read(), 0))
```

Note syntax:

- `A`–`G` are notes.
- `b` and `#` are flat and sharp.
- A number after a note is its octave. The default octave is 5.
- `R` is a rest before the next note.
- `<n` sets the length to 2ⁿ quarter notes, so `C<-1` is an eighth note.

Render a welcome message:

```python
from groupbot.manager import render_welcome

print(render_welcome("欢迎 {at} 加入 {groupname}!", 10001, "Alice", 123456, "Test group"))
```

## What the package does not do

- There is no chat connection and no command dispatcher. You match incoming
  messages and send replies yourself.
- Most modules do no network access of their own:
  - `hs` only builds URLs and parses replies.
  - `jandan.update` fetches pages through a callable you pass in.
  - `hyaku` reads a CSV file that is already on disk.
  - `KujiStore` expects a database that already holds the slip texts.
  - `holiday` parses `days_year_month_day` records but does not fetch them.
- The one exception is `check_new_user`, which fetches the gist with
  `requests` unless you give it another `fetch` function.

## Testing

Install the `test` extra, then run `pytest`.