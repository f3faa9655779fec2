from decimal import Decimal

WALLET = "0x" + "ab" * 20


def test_health(client):
    assert client.get("/").json() == {"status": "ok"}


def test_register_login_and_profile(client, register):
    headers = register("alice", email="alice@example.com")

    response = client.get("/users/me", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "alice"
    assert body["referral_code"].startswith("REF-")
    assert "hashed_password" not in body


def test_duplicate_registration_is_a_conflict(client, register):
    register("alice")

    response = client.post("/auth/register", json={"username": "alice", "password": "another-pass"})

    assert response.status_code == 409
    assert response.json() == {"detail": "Username already taken"}


def test_bad_credentials_and_missing_token(client, register):
    register("alice")

    login = client.post("/auth/login", json={"username": "alice", "password": "wrong-password"})

    assert login.status_code == 401
    assert client.get("/users/me").status_code == 401
    assert client.get("/users/me", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_referral_registration(client, register):
    carol = register("carol")
    code = client.get("/users/me", headers=carol).json()["referral_code"]
    register("dave", referral_code=code)

    summary = client.get("/users/me/referrals", headers=carol).json()

    assert summary["referred_users"] == ["dave"]
    bad = client.post(
        "/auth/register",
        json={"username": "erin", "password": "correct-horse", "referral_code": "REF-00000000"},
    )
    assert bad.status_code == 400


def test_wallet_update(client, register):
    headers = register()

    invalid = client.put("/users/me/wallet", json={"wallet_address": "0xnothex"}, headers=headers)
    valid = client.put("/users/me/wallet", json={"wallet_address": WALLET}, headers=headers)

    assert invalid.status_code == 400
    assert invalid.json() == {"detail": "Invalid Ethereum address format"}
    assert valid.status_code == 200
    assert valid.json()["wallet_address"] == WALLET


def test_stake_and_ledger(client, register):
    headers = register()

    response = client.post("/stakes", json={"amount": "2", "coin": "ETH"}, headers=headers)

    assert response.status_code == 201
    stake = response.json()
    assert Decimal(stake["amount"]) == 2
    assert stake["status"] == "active"
    assert stake["transaction_hash"].startswith("local-")

    [listed] = client.get("/stakes", headers=headers).json()
    assert listed["id"] == stake["id"]
    [tx] = client.get("/transactions", headers=headers).json()
    assert (tx["type"], Decimal(tx["amount"])) == ("stake", Decimal(2))


def test_stake_validation(client, register):
    headers = register()

    unsupported = client.post("/stakes", json={"amount": "200", "coin": "PIVX"}, headers=headers)
    too_small = client.post("/stakes", json={"amount": "0.001"}, headers=headers)
    negative = client.post("/stakes", json={"amount": "-1"}, headers=headers)

    assert unsupported.status_code == 400
    assert too_small.status_code == 400
    assert negative.status_code == 422


def test_withdraw_without_rewards_is_rejected(client, register):
    headers = register()
    client.post("/stakes", json={"amount": "1"}, headers=headers)

    response = client.post("/withdraw", json={"amount": "0.1"}, headers=headers)

    assert response.status_code == 400
    assert response.json() == {"detail": "Insufficient rewards balance"}


def test_withdraw_all_returns_principal(client, register):
    headers = register()
    client.post("/stakes", json={"amount": "1.5"}, headers=headers)

    response = client.post("/withdraw-all", json={"coin": "ETH"}, headers=headers)

    assert response.status_code == 200
    assert Decimal(response.json()["amount"]) == Decimal("1.5")
    assert client.get("/stakes", headers=headers).json()[0]["status"] == "withdrawn"
    again = client.post("/withdraw-all", json={}, headers=headers)
    assert again.status_code == 400


def test_stake_rewards_are_private(client, register):
    alice = register("alice")
    bob = register("bob")
    stake_id = client.post("/stakes", json={"amount": "1"}, headers=alice).json()["id"]

    created = client.post(f"/stakes/{stake_id}/rewards", json={"amount": "0.01"}, headers=alice)

    assert created.status_code == 201
    assert len(client.get(f"/stakes/{stake_id}/rewards", headers=alice).json()) == 1
    assert client.get(f"/stakes/{stake_id}/rewards", headers=bob).status_code == 404


def test_portfolio_includes_usd_value(client, register):
    headers = register()
    client.post("/stakes", json={"amount": "2"}, headers=headers)

    body = client.get("/portfolio", headers=headers).json()

    assert body["coin"] == "ETH"
    assert Decimal(body["staked"]) == 2
    assert body["price_usd"] == 2500.0
    assert body["value_usd"] == 5000.0


def test_portfolio_without_price_feed(client, register, price_provider):
    headers = register()
    price_provider.fail = True

    body = client.get("/portfolio", headers=headers).json()

    assert body["price_usd"] is None
    assert body["value_usd"] is None


def test_rewards_series_and_staking_data(client, register):
    headers = register()

    series = client.get(
        "/portfolio/rewards-series",
        params={"start": "2024-01-01T00:00:00", "end": "2024-01-01T03:00:00", "step_seconds": 3600},
        headers=headers,
    )
    bad = client.get(
        "/portfolio/rewards-series",
        params={"start": "2024-01-02T00:00:00", "end": "2024-01-01T00:00:00"},
        headers=headers,
    )
    data = client.get("/staking/data", headers=headers)

    assert series.status_code == 200
    assert len(series.json()) == 4
    assert all(Decimal(point["value"]) == 0 for point in series.json())
    assert bad.status_code == 400
    assert data.status_code == 200
    assert Decimal(data.json()["total_staked"]) == 0


def test_calculator(client):
    response = client.get("/calculator", params={"amount": "1000", "apy": "3", "days": 365})

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["simple_rewards"]) == Decimal(30)
    assert Decimal(body["compound_rewards"]) > Decimal(30)
    assert client.get("/calculator", params={"amount": "0"}).status_code == 422


def test_coins(client):
    listed = client.get("/coins", params={"enabled_only": True}).json()

    assert [coin["symbol"] for coin in listed] == ["ETH"]
    assert client.get("/coins/pivx").json()["enabled"] is False
    assert client.get("/coins/DOGE").status_code == 404


def test_price_served_stale_when_feed_fails(client, price_provider):
    fresh = client.get("/prices/ETH")
    price_provider.fail = True
    stale = client.get("/prices/ETH")

    assert fresh.status_code == 200
    assert fresh.json()["value"] == 2500.0
    assert fresh.json()["stale"] is False
    assert stale.status_code == 200
    assert stale.json()["stale"] is True
    assert price_provider.calls == 2


def test_price_failure_without_cache(client, price_provider):
    price_provider.fail = True

    response = client.get("/prices/ETH")

    assert response.status_code == 502
    assert response.json() == {"detail": "CoinGecko unreachable"}


def test_price_history(client):
    response = client.get("/prices/ETH/history", params={"days": 7})

    assert response.status_code == 200
    assert len(response.json()) == 2
    assert client.get("/prices/ETH/history", params={"days": 0}).status_code == 422


def test_admin_routes_require_admin(client, register):
    headers = register()

    assert client.get("/admin/overview", headers=headers).status_code == 403
    assert client.get("/admin/overview").status_code == 401


def test_admin_reports(client, register, admin_headers):
    headers = register()
    client.post("/stakes", json={"amount": "10"}, headers=headers)

    overview = client.get("/admin/overview", headers=admin_headers).json()
    rewards = client.get("/admin/rewards", headers=admin_headers).json()
    staking = client.get("/admin/staking", headers=admin_headers).json()

    assert overview["total_users"] == 2
    assert overview["active_stakes"] == 1
    assert Decimal(overview["total_staked_amount"]) == 10
    assert Decimal(rewards["apy_spread"]) == Decimal("0.57")
    assert Decimal(rewards["yearly_projected"]) == Decimal("0.057")
    assert [row["username"] for row in staking] == ["alice"]


def test_admin_runs_reward_tick(client, register, admin_headers):
    headers = register()
    client.post("/stakes", json={"amount": "10"}, headers=headers)

    first = client.post("/admin/rewards/run", headers=admin_headers).json()
    second = client.post("/admin/rewards/run", headers=admin_headers).json()

    assert first == {"posted": 1, "referral_posted": 0, "skipped": 0, "failed": 0}
    assert second["posted"] == 0
    types = [tx["type"] for tx in client.get("/transactions", headers=headers).json()]
    assert types.count("reward") == 1


def test_admin_settings(client, admin_headers):
    current = client.get("/admin/settings", headers=admin_headers).json()
    updated = client.put(
        "/admin/settings",
        json={"displayed_apy": "4", "master_wallet_address": WALLET},
        headers=admin_headers,
    )
    invalid = client.put(
        "/admin/settings", json={"master_wallet_address": "0x123"}, headers=admin_headers
    )

    assert Decimal(current["displayed_apy"]) == Decimal(3)
    assert updated.status_code == 200
    assert Decimal(updated.json()["displayed_apy"]) == Decimal(4)
    assert updated.json()["master_wallet_address"] == WALLET
    assert updated.json()["updated_by"] is not None
    assert invalid.status_code == 400


def test_admin_deletes_user(client, register, admin_headers):
    headers = register()
    client.post("/stakes", json={"amount": "1"}, headers=headers)
    user_id = client.get("/users/me", headers=headers).json()["id"]

    detail = client.get(f"/admin/users/{user_id}", headers=admin_headers)
    deleted = client.delete(f"/admin/users/{user_id}", headers=admin_headers)

    assert detail.status_code == 200
    assert len(detail.json()["stakes"]) == 1
    assert deleted.status_code == 204
    assert client.get(f"/admin/users/{user_id}", headers=admin_headers).status_code == 404
    assert client.get("/users/me", headers=headers).status_code == 401


def test_calculator_with_large_amounts(client):
    large = client.get("/calculator", params={"amount": "20000000000", "days": 365})
    too_large = client.get("/calculator", params={"amount": "1000000000000000000"})

    assert large.status_code == 200
    assert Decimal(large.json()["simple_rewards"]) == Decimal(600_000_000)
    assert too_large.status_code == 400


def test_network_stats_follow_the_master_wallet_stake(client, register):
    headers = register()

    before = client.get("/staking/network", headers=headers).json()
    client.post("/stakes", json={"amount": "2"}, headers=headers)
    after = client.get("/staking/network", headers=headers).json()

    assert before["validator_id"] is None
    assert after["validator_id"] == "local-validator"
    assert after["status"] == "ACTIVE"
    assert after["total_staked_wei"] == str(2 * 10**18)
    assert client.get("/staking/network").status_code == 401


def test_portfolio_amounts_are_rounded_for_display(client, register):
    headers = register()
    client.post("/stakes", json={"amount": "1.23456789"}, headers=headers)

    body = client.get("/portfolio", headers=headers).json()

    assert body["staked"] == "1.234568"
