def words(n, word="word"):
    return "<p>" + " ".join([word] * n) + "</p>"
