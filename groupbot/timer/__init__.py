"""Group reminders: packed timers, Chinese date parsing, cron, scheduling and persistence."""