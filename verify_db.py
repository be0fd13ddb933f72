from backend.app.db.arango import db, OUTCOMES_COLLECTION, LIVE_COLLECTION, DOCUMENTS_COLLECTION

def verify_data():
    database = db.get_db()
    if database is None:
        print("❌ ArangoDB is not reachable")
        return

    # Recorded sessions
    outcomes = database.collection(OUTCOMES_COLLECTION)
    outcome_count = outcomes.count()
    print(f"✅ {OUTCOMES_COLLECTION} Collection: {outcome_count} documents")
    if outcome_count > 0:
        cursor = database.aql.execute(
            "FOR s IN @@col SORT s.start_ts DESC LIMIT 3 RETURN s",
            bind_vars={"@col": OUTCOMES_COLLECTION},
        )
        print("   Latest Sessions:")
        for doc in cursor:
            print(f"   - {doc['activity_summary'][:60]} ({doc['duration']}s, {doc['disposition']})")

    # In-flight keys (sessions, guards, notices); expired ones wait for the TTL sweep
    live_count = database.collection(LIVE_COLLECTION).count()
    print(f"✅ {LIVE_COLLECTION} Collection: {live_count} keys")

    documents_count = database.collection(DOCUMENTS_COLLECTION).count()
    print(f"✅ {DOCUMENTS_COLLECTION} Collection: {documents_count} documents")

if __name__ == "__main__":
    verify_data()
