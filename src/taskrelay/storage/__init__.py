"""SQLite persistence shared by the durable broker and backend."""
